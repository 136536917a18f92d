"""
Custom exceptions for the simport package.
"""


class SimportError(Exception):
    """Base exception for all simport errors."""

    pass


class TemplateConfigurationError(SimportError):
    """Raised when a template's column metadata is internally inconsistent."""

    pass


class UnknownTableError(TemplateConfigurationError):
    """Raised when schema introspection knows nothing about a table."""

    def __init__(self, table_name: str):
        super().__init__(f"No schema information for table '{table_name}'")
        self.table_name = table_name


class SelfReferenceError(TemplateConfigurationError):
    """Raised when an imported table requires a row of itself."""

    pass


class TemplateAlreadyResolvedError(TemplateConfigurationError):
    """Raised when a template is resolved a second time."""

    pass


class ResolutionError(SimportError):
    """Raised when the table dependency graph cannot be linearized."""

    pass


class DependencyCycleError(ResolutionError):
    """Raised when two or more imported tables depend on each other."""

    def __init__(self, cycle: list[str]):
        super().__init__(f"Circular table dependency: {' -> '.join(cycle)}")
        self.cycle = cycle


class TemplateReaderError(SimportError):
    """Raised when a template definition file cannot be read."""

    pass


class SchemaLoadError(SimportError):
    """Raised when a schema description cannot be loaded."""

    pass


class ConfigError(SimportError):
    """Raised when the resolver configuration is invalid."""

    pass


class OutputGenerationError(SimportError):
    """Raised when a resolution cannot be exported."""

    pass
