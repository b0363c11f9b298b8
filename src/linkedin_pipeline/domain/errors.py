from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors raised by the pipeline."""


class ConfigurationError(PipelineError):
    """Missing or invalid configuration. Fatal at startup."""


class StoreUnavailableError(PipelineError):
    """The external record store could not answer or accept a write."""


class ExtractionError(PipelineError):
    """A loaded page could not be turned into records."""
