from typing import Any, Dict, Union

from loguru import logger
from pydantic import ValidationError

from portfolio_audit.errors import MalformedResponseError, SchemaError
from portfolio_audit.models.audit import AuditResult
from portfolio_audit.normalization.catalog_decoder import parse_json_payload


def validate_audit_response(raw: Union[str, bytes, Dict[str, Any]]) -> AuditResult:
    """Parse and validate an oracle response into an ``AuditResult``.

    Raises:
        MalformedResponseError: the payload is not JSON, the summary status or
            risk score is out of range, or any detail lacks ``risk_level`` or
            ``analysis_text``. No partial result is ever returned.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = parse_json_payload(raw)
        except SchemaError as e:
            raise MalformedResponseError(f"Audit response is not JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Audit response must be an object, got {type(data).__name__}"
        )

    try:
        result = AuditResult.model_validate(data)
    except ValidationError as e:
        logger.error(f"Audit response failed validation with {e.error_count()} error(s)")
        raise MalformedResponseError(f"Audit response failed validation: {e}") from e

    logger.debug(
        f"Audit validated: {result.summary.status.value} ({result.summary.risk_score}) "
        f"with {len(result.details)} detail(s)"
    )
    return result
