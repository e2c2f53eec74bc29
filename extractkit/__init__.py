"""extractkit: schema-conforming structured extraction over text-generation backends."""

__version__ = "0.1.0"
