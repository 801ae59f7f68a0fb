# spangraph/exceptions.py
"""
Exceptions shared across the project.

- ConfigError          : environment / spec catalog problems
- UnalignedFieldError  : tag field whose `align` target is not a Tokens field
- SpecLoadError        : spec YAML could not be read or parsed
- RecordDataError      : malformed record value or invalid edge range
- PredictionFetchError : prediction service call or response parsing failed
"""

class ConfigError(RuntimeError):
    """Environment settings or spec catalog problem."""
    pass


class UnalignedFieldError(ConfigError):
    """A prediction field is aligned to a token field that does not exist."""

    def __init__(self, field_name: str, align: object):
        self.field_name = field_name
        self.align = align
        super().__init__(
            f"Unaligned field '{field_name}': align target {align!r} "
            "is not a Tokens field of the same spec."
        )


class SpecLoadError(IOError):
    """Spec catalog YAML could not be loaded."""
    pass


class RecordDataError(ValueError):
    """Record value does not match the kind declared by its field."""
    pass


class PredictionFetchError(RuntimeError):
    """Prediction service call, response format or parsing failure."""
    pass
