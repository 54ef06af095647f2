"""Consent flow: build the access request URL and turn a callback into data access."""

import logging
import secrets
import webbrowser

from authlib.integrations.base_client import OAuthError

from ..data.token_client import (
    Member,
    Representable,
    ResourceType,
    TokenClient,
    TokenClientError,
    TokenRequest,
)

logger = logging.getLogger(__name__)

REQUESTED_RESOURCES = [ResourceType.ACCOUNTS, ResourceType.BALANCES, ResourceType.TRANSACTIONS]


class ConsentManager:
    """Manages the account-linking consent flow against the aggregation platform."""

    def __init__(self, client: TokenClient, redirect_url: str):
        """
        Initialize consent manager.

        Args:
            client: Aggregation platform client.
            redirect_url: Callback URL the platform sends the user back to.
        """
        self.client = client
        self.redirect_url = redirect_url
        logger.info("Consent Manager initialized")

    async def generate_consent_url(self, member: Member) -> str:
        """
        Store an access request for accounts, balances and transactions.

        Args:
            member: Member the access is requested for.

        Returns:
            URL where the user grants (or denies) the request.
        """
        ref_id = secrets.token_urlsafe(16)
        request = TokenRequest(
            resources=list(REQUESTED_RESOURCES),
            ref_id=ref_id,
            to_member_id=member.member_id,
            to_alias=await member.first_alias(),
            redirect_url=self.redirect_url,
        )
        request_id = await member.store_token_request(request)
        url = await self.client.generate_token_request_url(request_id)
        logger.info(f"Generated consent URL for request {request_id}")
        return url

    def open_in_browser(self, url: str) -> bool:
        """Open the consent URL locally, printing it when no browser is available."""
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning(f"Browser launch failed: {e}")
            opened = False
        if not opened:
            logger.warning("Couldn't launch a browser automatically. Please copy/paste the URL below into your browser.")
            print("REDIRECT!")
            print(f"Open this link: {url}")
        return opened

    async def resolve(self, member: Member, request_id: str) -> Representable:
        """
        Exchange a callback request id for access to the consented data.

        The platform's callback carries a request id; the token id is looked
        up from it rather than read from the callback URL.

        Args:
            member: Member the access token was issued to.
            request_id: Value of the ``request-id`` callback parameter.

        Returns:
            Representable scoped to the granted access token.

        Raises:
            OAuthError: If the request id cannot be resolved to a token.
        """
        try:
            result = await self.client.get_token_request_result(request_id)
        except TokenClientError as e:
            logger.error(f"Token request lookup failed for {request_id}: {e}")
            raise OAuthError(error='request_lookup_failed', description=str(e))

        if not result.token_id:
            raise OAuthError(error='access_denied', description=f"No access token issued for request {request_id}")

        logger.info(f"Request {request_id} resolved to token {result.token_id}")
        return member.for_access_token(result.token_id)
