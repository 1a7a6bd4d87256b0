"""Collection job repository for the collection_jobs collection."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from shared.utils import generate_id, get_utc_now


class JobStatus:
    """Collection job status constants."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobAlreadyRunning(Exception):
    """The store refused a second RUNNING job."""


class CollectionJobRepository:
    """Repository for collection job bookkeeping."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.collection_jobs

    async def find_running(self) -> List[Dict[str, Any]]:
        """Get every job currently in RUNNING state."""
        cursor = self.collection.find({"status": JobStatus.RUNNING})
        return await cursor.to_list(length=None)

    async def start_job(self, source: str) -> Dict[str, Any]:
        """
        Create a job directly in RUNNING state.

        The partial unique index on RUNNING status turns a lost check-then-act
        race into JobAlreadyRunning instead of a second RUNNING job.
        """
        now = get_utc_now()
        job = {
            "_id": generate_id("cjob"),
            "source": source,
            "status": JobStatus.RUNNING,
            "started_at": now,
            "finished_at": None,
            "new_articles": 0,
            "new_products": 0,
            "new_keywords": 0,
            "duplicates": 0,
            "matched_products": 0,
            "linked_products": 0,
            "summarized": 0,
            "errors": [],
            "created_at": now,
            "updated_at": now
        }

        try:
            await self.collection.insert_one(job)
        except DuplicateKeyError as e:
            raise JobAlreadyRunning(str(e)) from e
        return job

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a job by ID."""
        return await self.collection.find_one({"_id": job_id})

    async def _finish_job(
        self,
        job_id: str,
        status: str,
        counts: Dict[str, int],
        errors: List[str]
    ) -> bool:
        """Move a RUNNING job to a terminal status. Terminal jobs are never re-entered."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.RUNNING},
            {
                "$set": {
                    **counts,
                    "status": status,
                    "errors": errors,
                    "finished_at": now,
                    "updated_at": now
                }
            }
        )
        return result.modified_count > 0

    async def complete_job(self, job_id: str, counts: Dict[str, int], errors: List[str]) -> bool:
        """Mark a job as completed with its final counts."""
        return await self._finish_job(job_id, JobStatus.COMPLETED, counts, errors)

    async def fail_job(self, job_id: str, counts: Dict[str, int], errors: List[str]) -> bool:
        """Mark a job as failed, keeping whatever counts were reached."""
        return await self._finish_job(job_id, JobStatus.FAILED, counts, errors)

    async def list_jobs(
        self,
        source: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List jobs newest first with optional source/status filters."""
        query = self._filter(source, status)
        cursor = self.collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def count_jobs(self, source: Optional[str] = None, status: Optional[str] = None) -> int:
        """Count jobs matching the same filters as list_jobs."""
        return await self.collection.count_documents(self._filter(source, status))

    @staticmethod
    def _filter(source: Optional[str], status: Optional[str]) -> Dict[str, Any]:
        query = {}
        if source:
            query["source"] = source
        if status:
            query["status"] = status
        return query
