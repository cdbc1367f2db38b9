"""Data loaders for CGM and insulin pump exports."""

from cgm_insulin_analyzer.loaders.glooko import GlookoExportLoader

__all__ = ["GlookoExportLoader"]
