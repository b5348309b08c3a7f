"""Endpoints polled by the browser-extension workers.

Workers never see project information: they get a term, scrape it, and post back.
"""

from fastapi import APIRouter, Depends

from serp_collector.deps import get_dispatcher, require_worker_key
from serp_collector.exceptions import STORE_ERRORS, StorageError
from serp_collector.schemas import Ack, ClaimedQuery, ResultSubmission
from serp_collector.services.dispatcher import QueryDispatcher

router = APIRouter(dependencies=[Depends(require_worker_key)], tags=["worker"])


@router.get("/queries/next", response_model=ClaimedQuery | None)
async def next_query(dispatcher: QueryDispatcher = Depends(get_dispatcher)):
    try:
        return await dispatcher.claim()
    except STORE_ERRORS as e:
        raise StorageError("Failed to get next query", str(e)) from e


@router.post("/results", response_model=Ack)
async def submit_results(
    submission: ResultSubmission,
    dispatcher: QueryDispatcher = Depends(get_dispatcher),
):
    try:
        await dispatcher.submit(submission)
    except STORE_ERRORS as e:
        raise StorageError("Failed to save results", str(e)) from e
    return Ack()
