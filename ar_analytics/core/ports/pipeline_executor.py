from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from ..domain.pipeline import Stage


class PipelineExecutor(ABC):
    """
    Port (interface) for the backing document store.
    Executes typed aggregation stages against a tenant database.
    """

    @abstractmethod
    async def execute_pipeline(
        self,
        database: str,
        collection: str,
        stages: Sequence[Stage]
    ) -> List[Dict[str, Any]]:
        """
        Run an aggregation pipeline.

        Args:
            database: Tenant database name
            collection: Collection holding metric samples
            stages: Ordered typed stages

        Returns:
            Fully materialized rows, in the order produced by the final sort stage

        Raises:
            RepositoryError: If the store cannot execute the pipeline
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
