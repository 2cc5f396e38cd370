"""Errores del dominio. La capa HTTP los traduce a status codes."""


class ServiceError(Exception):
    """Error en la ejecucion de servicios."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Datos de entrada invalidos; se rechazan antes de cualquier lectura."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(ServiceError):
    pass


class WarehouseNotFoundError(NotFoundError):
    def __init__(self, warehouse: str):
        super().__init__("Depósito inválido")
        self.warehouse = warehouse


class ProductNotFoundError(NotFoundError):
    def __init__(self, sku: str):
        super().__init__(f"Producto no encontrado: {sku}")
        self.sku = sku


class ConflictError(ServiceError):
    """El recurso existe pero el estado actual no permite la operacion."""


class InsufficientStockError(ConflictError):
    def __init__(self, sku: str, requested: int, available: int):
        super().__init__(f"Stock insuficiente para {sku}")
        self.sku = sku
        self.requested = requested
        self.available = available


class DuplicateTicketError(ConflictError):
    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket duplicado: {ticket_id}")
        self.ticket_id = ticket_id


class DuplicateSkuError(ConflictError):
    def __init__(self, sku: str):
        super().__init__("SKU duplicado")
        self.sku = sku


class DuplicateWarehouseError(ConflictError):
    def __init__(self, name: str):
        super().__init__(f"Depósito duplicado: {name}")
        self.name = name


class PersistenceError(ServiceError):
    """La base no pudo confirmar la transaccion; ya se hizo rollback."""

    def __init__(self, message: str = "No se pudo guardar en la base de datos"):
        super().__init__(message)
