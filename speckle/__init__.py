"""
Core package init for the live speckle autocorrelation project.
Exposes public modules for import in tests, the pipeline and the CLI.
"""
__all__ = ["frame", "config", "extraction", "fft_engine", "accumulator", "filters"]
