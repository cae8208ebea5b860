# app/domain/errors.py


class DocumentError(Exception):
    """
    Error base del motor de documentos. Cada subclase indica el código HTTP
    con el que se expone y si el llamador puede reintentar la operación.
    """
    status_code = 500
    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(DocumentError):
    """Campos faltantes, mal formados o negativos. Nunca llega a persistir nada."""
    status_code = 400


class InvalidLineItem(ValidationError):
    """Un ítem con cantidad, días o precio fuera de rango."""


class NumberAlreadyTaken(ValidationError):
    """El número ya pertenece a otro documento del mismo tipo (aunque esté eliminado)."""


class InvalidTotals(DocumentError):
    """total != subtotal + impuesto más allá de la tolerancia de redondeo."""
    status_code = 400


class NotFound(DocumentError):
    """El documento, el cliente o el gestor referenciado no existe o está eliminado."""
    status_code = 404


class SequenceConflict(DocumentError):
    """Se agotó el único reintento al asignar el número correlativo."""
    status_code = 503
    retryable = True


class PersistenceFailure(DocumentError):
    """Fallo de la capa de almacenamiento (restricciones, conectividad)."""
    status_code = 503
    retryable = True


class PersistenceTimeout(PersistenceFailure):
    """La operación de almacenamiento superó el tiempo máximo permitido."""
    status_code = 504
