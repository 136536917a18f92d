"""
Resolver layer: override rules and the template dependency resolver.
"""

from .dependency_resolver import DependencyResolver, TemplateResolution, resolve_template_dependencies
from .overrides import (
    DEFAULT_ALIASES,
    DEFAULT_RULES,
    DropRequirement,
    ForceRequirement,
    ParentAlias,
    SuppressRequirement,
)

__all__ = [
    "DEFAULT_ALIASES",
    "DEFAULT_RULES",
    "DependencyResolver",
    "DropRequirement",
    "ForceRequirement",
    "ParentAlias",
    "SuppressRequirement",
    "TemplateResolution",
    "resolve_template_dependencies",
]
