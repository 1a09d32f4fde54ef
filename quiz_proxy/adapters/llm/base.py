from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UpstreamResponse:
	"""Raw upstream reply, relayed to the caller without reinterpretation.

	Attributes:
		status_code: HTTP status returned by the upstream API.
		content: Response body bytes, exactly as received.
		content_type: Upstream Content-Type header, if any.
	"""

	status_code: int
	content: bytes
	content_type: str | None = None

	@property
	def is_success(self) -> bool:
		return 200 <= self.status_code < 300


class AbstractUpstreamClient(ABC):
	"""Interface for clients that forward request bodies to an LLM API."""

	@abstractmethod
	async def forward(self, body: bytes) -> UpstreamResponse:
		"""POST ``body`` unmodified to the upstream endpoint.

		Args:
			body: Inbound JSON request body bytes.

		Returns:
			UpstreamResponse: Status, body and content type of the reply,
				including upstream-reported errors (4xx/5xx).

		Raises:
			UpstreamUnavailableAppError: If the call cannot be completed at the
				transport level (connection failure, timeout, protocol error).
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client, if any."""
		return None
