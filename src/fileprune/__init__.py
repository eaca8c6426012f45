"""FilePrune - unreferenced file detection for TypeScript projects."""

__version__ = "0.1.0"
