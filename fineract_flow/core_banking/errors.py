import logging as logging_library
from typing import Optional

import requests

from fineract_flow.exceptions import CoreBankingApiError

logging = logging_library.getLogger(__name__)


def _http_response(error: BaseException) -> Optional[requests.Response]:
    if isinstance(error, requests.HTTPError):
        return error.response
    return None


def extract_error_body(error: BaseException) -> str:
    """Body of the failed HTTP response, or an empty string."""
    response = _http_response(error)
    if response is None:
        return ""
    try:
        return response.text or ""
    except (ValueError, RuntimeError) as ex:
        logging.warning("Could not read error response body: %s", ex)
        return ""


def log_detailed_error(operation: str, resource_id: Optional[str], error: BaseException, with_body: bool = False):
    response = _http_response(error)
    target = f"{operation} for resource {resource_id}" if resource_id is not None else operation
    if response is not None:
        if with_body:
            logging.error(
                "Fineract API error during %s: HTTP %s - %s - Body: %s",
                target,
                response.status_code,
                response.reason,
                extract_error_body(error),
            )
        else:
            logging.error("Fineract API error during %s: HTTP %s - %s", target, response.status_code, response.reason)
    else:
        logging.error("Error during %s: %s", target, error, exc_info=error)


def create_exception(
    operation: str,
    error: BaseException,
    resource_id: Optional[str] = None,
    error_body: Optional[str] = None,
) -> CoreBankingApiError:
    target = f"{operation} for resource {resource_id}" if resource_id is not None else operation
    response = _http_response(error)
    if response is None:
        return CoreBankingApiError(
            f"Failed to {target}",
            operation,
            resource_id,
            error_body=error_body if error_body is not None else str(error),
            cause=error,
        )
    if error_body is None:
        error_body = extract_error_body(error)
    return CoreBankingApiError(
        f"Failed to {target}: HTTP {response.status_code}",
        operation,
        resource_id,
        http_status=response.status_code,
        error_body=error_body,
        cause=error,
    )


def handle_error(operation: str, error: BaseException, resource_id: Optional[str] = None) -> CoreBankingApiError:
    """Log ``error`` and translate it into a :class:`CoreBankingApiError`."""
    log_detailed_error(operation, resource_id, error)
    return create_exception(operation, error, resource_id)
