"""CSV to structured record importer.

Parse delimited text, map source columns onto a target schema, validate
required fields, preview the coerced records and hand them to a writer.
"""

__version__ = "0.1.0"
