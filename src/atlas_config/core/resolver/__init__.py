# src/atlas_config/core/resolver/__init__.py
"""
Resolução de expressões `${resolverId:expression}`.

Componentes principais:
    - evaluator → ExpressionEvaluator, ResolutionResult
    - builtin   → resolvers `conf`, `sys`, `env`, `file`, `resource`
"""

from .builtin import (
    ConfigResolver,
    EnvironmentResolver,
    FileResolver,
    ResourceResolver,
    SystemResolver,
)
from .evaluator import ExpressionEvaluator, ResolutionResult, masked

__all__ = [
    "ConfigResolver",
    "EnvironmentResolver",
    "ExpressionEvaluator",
    "FileResolver",
    "ResolutionResult",
    "ResourceResolver",
    "SystemResolver",
    "masked",
]
