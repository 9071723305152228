"""Classification of token endpoint responses."""

from collections.abc import Sequence

from tokengate.dto import TokenResponse
from tokengate.errors import ServerError


def _is_code_list(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str)


def _render_code_list(codes: Sequence) -> str:
    # Nested lists flatten and null entries render empty: [None, "1"] -> ",1"
    return ",".join(
        ""
        if code is None
        else _render_code_list(code)
        if _is_code_list(code)
        else str(code)
        for code in codes
    )


def validate_token_response(response: TokenResponse) -> None:
    """Raise ServerError if the provider declared a failure.

    A response is an error when either ``error`` or ``error_description`` is
    set, whatever success fields come along with it. Anything else passes
    untouched; checking that success fields are usable is left to the
    result builder.
    """
    error = response.get("error")
    error_description = response.get("error_description")
    if not (error or error_description):
        return

    error_codes = response.get("error_codes")
    timestamp = response.get("timestamp")
    correlation_id = response.get("correlation_id")
    trace_id = response.get("trace_id")

    # Absent values render as-is; a code list renders comma-joined.
    rendered_codes = (
        _render_code_list(error_codes)
        if _is_code_list(error_codes)
        else str(error_codes)
    )
    message = (
        f"{rendered_codes} - [{timestamp}]: {error_description}"
        f" - Correlation ID: {correlation_id} - Trace ID: {trace_id}"
    )
    raise ServerError(
        error,
        message,
        error_description=error_description,
        error_codes=error_codes if _is_code_list(error_codes) else None,
        timestamp=timestamp,
        trace_id=trace_id,
        correlation_id=correlation_id,
    )
