from .registry_operations_service import RegistryOperationsService

__all__ = ["RegistryOperationsService"]
