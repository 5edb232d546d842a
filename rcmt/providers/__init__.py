"""Provider drivers for rcmt."""
