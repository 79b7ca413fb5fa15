"""Merge, declaration and build pipeline."""

from .merge import LoadedLayer, MergeEngine, MergeResult, SourceErrorPolicy, SourceRegistration, merge_layers
from .declarations import (
    Declaration,
    DeclarationEngine,
    MapTransformDeclaration,
    MapValidateDeclaration,
    OptionalDeclaration,
    RequiredDeclaration,
    TransformDeclaration,
    ValidateDeclaration,
)
from .builder import ConfigurationBuilder

__all__ = [
    "ConfigurationBuilder",
    "Declaration",
    "DeclarationEngine",
    "LoadedLayer",
    "MapTransformDeclaration",
    "MapValidateDeclaration",
    "MergeEngine",
    "MergeResult",
    "OptionalDeclaration",
    "RequiredDeclaration",
    "SourceErrorPolicy",
    "SourceRegistration",
    "TransformDeclaration",
    "ValidateDeclaration",
    "merge_layers",
]
