from .math_tools import MathTools
from .schema_codec import SchemaCodec

__all__ = ["MathTools", "SchemaCodec"]
