"""
Test doubles for the pipeline's external collaborators.
"""
import copy
from typing import Any, Dict, List, Tuple, Union


class FakeGateway:
    """
    API gateway returning canned responses per (api_id, endpoint_id).

    A response can be a value, an exception to raise, or a callable taking
    the call args.
    """
    def __init__(self, responses: Dict[Tuple[str, str], Any]):
        self.responses = responses
        self.calls: List[Tuple[str, str, Dict]] = []

    async def call(self, api_id, endpoint_id, args=None):
        self.calls.append((api_id, endpoint_id, dict(args or {})))
        response = self.responses[(api_id, endpoint_id)]
        if callable(response):
            response = response(args or {})
        if isinstance(response, BaseException):
            raise response
        return copy.deepcopy(response)


class FakeAIProvider:
    """
    Rewrite provider replaying a script of outputs; the last entry repeats.
    """
    name = "fake"

    def __init__(self, outputs: List[Union[str, BaseException]]):
        self.outputs = list(outputs)
        self.calls: List[str] = []

    @property
    def is_configured(self):
        return True

    async def rewrite(self, text):
        self.calls.append(text)
        index = min(len(self.calls) - 1, len(self.outputs) - 1)
        output = self.outputs[index]
        if isinstance(output, BaseException):
            raise output
        return output

    async def close_session(self):
        pass


class RecordingSleep:
    """Sleep replacement that records requested delays and returns at once."""
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class FakePageFetcher:
    """
    Page fetcher serving (status, html) pairs or raising configured errors.
    """
    def __init__(self, pages: Dict[str, Any] = None):
        self.pages = pages or {}
        self.requested: List[str] = []

    async def get_html(self, url, timeout=None):
        self.requested.append(url)
        page = self.pages.get(url, (404, ""))
        if isinstance(page, BaseException):
            raise page
        return page

    async def close_session(self):
        pass


def words(count: int, word: str = "lorem") -> str:
    return " ".join([word] * count)
