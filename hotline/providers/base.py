"""Abstract base class for issue tracker gateways."""

from abc import ABC, abstractmethod

from hotline.models import IssueRequest, IssueResult


class IssueGateway(ABC):
    @abstractmethod
    async def create_issue(self, request: IssueRequest) -> IssueResult: ...

    async def aclose(self) -> None:
        pass
