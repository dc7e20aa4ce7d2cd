"""Correlation of batch order responses with the submitted orders.

The backend reports per-item outcomes by position in the submitted list. Those
indices are treated as untrusted: out of range entries are dropped, and any
submitted order without a report is counted as failed.
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

from limits_sdk.types import BatchFailure, BatchResult, BatchSuccess

log = logging.getLogger(__name__)

NO_RESULT_REPORTED = "no result reported"


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _entry_error(entry: Mapping[str, Any]) -> str:
    error = entry.get("error") or entry.get("message")
    return str(error) if error else "unknown error"


def _entry_outcome(entry: Mapping[str, Any]) -> Any:
    return entry.get("data", entry)


def _unwrap(backend_result: Any) -> Any:
    """Strip the ``{success, message, data}`` envelope if present."""
    if isinstance(backend_result, Mapping):
        data = backend_result.get("data")
        if isinstance(data, (Mapping, list)) and (
            isinstance(data, list) or "results" in data or "errors" in data
        ):
            return data
    return backend_result


def _tagged_entries(backend_result: Any) -> Iterable[tuple[Mapping[str, Any], bool]]:
    """Yield ``(entry, reported_in_results_bucket)`` pairs."""
    if isinstance(backend_result, list):
        for entry in backend_result:
            yield entry, True
        return
    for bucket, in_results in (("results", True), ("errors", False)):
        entries = backend_result.get(bucket)
        if entries is None:
            continue
        if not isinstance(entries, list):
            log.warning("Ignoring batch %s that is not a list: %r", bucket, entries)
            continue
        for entry in entries:
            yield entry, in_results


def aggregate(submitted: Sequence[Any], backend_result: Any) -> BatchResult:
    """Reconcile a batch response with the ordered list of submitted orders.

    Args:
        submitted: The orders exactly as submitted, in submission order.
        backend_result: The backend's response. Accepts the full response
            envelope, its ``data`` object, a list of per-item entries, or a
            single object describing the whole batch.

    Returns:
        BatchResult whose ``results`` and ``errors`` are ordered by ascending
        submitted index, with every index in exactly one of them and
        ``total == len(submitted)``.

    """
    n = len(submitted)
    body = _unwrap(backend_result)

    if isinstance(body, Mapping) and "results" not in body and "errors" not in body:
        # no per-item breakdown: the single outcome applies to the whole batch
        if body.get("success") is False or body.get("error"):
            error = _entry_error(body)
            return BatchResult(
                total=n,
                successful=0,
                failed=n,
                errors=[
                    BatchFailure(i, error, order) for i, order in enumerate(submitted)
                ],
            )
        return BatchResult(
            total=n,
            successful=n,
            failed=0,
            results=[
                BatchSuccess(i, body, order) for i, order in enumerate(submitted)
            ],
        )

    successes: dict[int, Any] = {}
    failures: dict[int, str] = {}
    if isinstance(body, (Mapping, list)):
        for entry, in_results in _tagged_entries(body):
            if not isinstance(entry, Mapping):
                log.warning("Dropping malformed batch entry %r", entry)
                continue
            index = entry.get("index")
            if not _is_index(index) or not 0 <= index < n:
                log.warning(
                    "Dropping batch entry with index %r outside of [0, %d)", index, n
                )
                continue
            succeeded = entry.get("success")
            if not isinstance(succeeded, bool):
                succeeded = in_results
            if succeeded:
                if index in failures:
                    log.warning(
                        "Batch index %d reported as failed and successful", index
                    )
                    continue
                successes.setdefault(index, _entry_outcome(entry))
            else:
                if index in successes:
                    log.warning(
                        "Batch index %d reported as successful and failed", index
                    )
                    del successes[index]
                failures.setdefault(index, _entry_error(entry))

        if isinstance(body, Mapping):
            reported_total = body.get("total")
            if reported_total is not None and reported_total != n:
                log.info(
                    "Backend reported total=%r for a batch of %d orders",
                    reported_total,
                    n,
                )
    else:
        log.warning("Unrecognized batch response %r", backend_result)

    result = BatchResult(total=n, successful=0, failed=0)
    for index, order in enumerate(submitted):
        if index in successes:
            result.results.append(BatchSuccess(index, successes[index], order))
        else:
            result.errors.append(
                BatchFailure(index, failures.get(index, NO_RESULT_REPORTED), order)
            )
    result.successful = len(result.results)
    result.failed = len(result.errors)
    return result
