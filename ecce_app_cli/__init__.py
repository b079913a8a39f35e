"""ecce - watch a document for prompt markers and write generated answers back in place."""

__version__ = "0.1.0"
