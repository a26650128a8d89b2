import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

DEFAULT_LOGGER_NAME = "nominatim_client"

# Atributos estándar de LogRecord que no se tratan como campos "extra"
_RESERVED_FIELDS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _to_json_safe(value: Any) -> Any:
    """Convierte un valor arbitrario en algo que json.dumps acepte."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(k): _to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_json_safe(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    # Modelos Pydantic y excepciones de la librería
    for method in ("model_dump", "to_dict"):
        if hasattr(value, method):
            return _to_json_safe(getattr(value, method)())
    return repr(value)


class StructuredJSONFormatter(logging.Formatter):
    """
    Formatea cada registro como una línea JSON.

    Los argumentos pasados con ``extra={...}`` se añaden como claves de primer
    nivel, por ejemplo::

        log.info("Request sent", extra={"path": "search", "status": 200})
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_FIELDS and not key.startswith("_"):
                log_data[key] = _to_json_safe(value)

        return json.dumps(log_data, ensure_ascii=False)


def get_logger(logger=None) -> logging.Logger:
    """Devuelve el logger indicado o el de la librería con un NullHandler."""
    if logger is not None:
        return logger
    log = logging.getLogger(DEFAULT_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in log.handlers):
        log.addHandler(logging.NullHandler())
    return log


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    logger_name: str = DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """
    Configura un StreamHandler para el logger de la librería.

    Args:
        level: Nivel de logging (default: logging.INFO)
        json_format: Si es True, usa StructuredJSONFormatter
        logger_name: Nombre del logger a configurar

    Returns:
        logging.Logger: Logger configurado
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Un solo StreamHandler aunque se llame varias veces
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        handler = logging.StreamHandler()
        if json_format:
            handler.setFormatter(StructuredJSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ))
        logger.addHandler(handler)

    return logger
