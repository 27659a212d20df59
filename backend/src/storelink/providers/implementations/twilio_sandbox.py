"""
Twilio WhatsApp sandbox messaging provider

The sandbox only delivers messages to numbers that first sent
"join <keyword>" to the sandbox number, so connecting ends in
PendingActivation until the seller confirms the handshake was sent.
"""

from typing import Any, Dict, Optional

import httpx

from ...config import settings
from ...credentials.schemas import Credential
from ..base_provider import BaseProvider
from ..ports import MessagingProviderPort, ProviderError, ProbeResult


class TwilioSandboxProvider(BaseProvider, MessagingProviderPort):
    """
    Credential:
        account_id: Twilio account SID (AC...)
        access_token: Twilio auth token
        options.sandbox_keyword: the account's sandbox join keyword
        options.sandbox_number: sandbox WhatsApp number (optional, shown to the user)
    """

    provider_type = "TWILIO_SANDBOX"
    requires_activation = True
    required_fields = ["account_id", "access_token", "options.sandbox_keyword"]

    def __init__(self, transport: Optional[httpx.BaseTransport] = None, timeout: Optional[float] = None,
                 api_url: Optional[str] = None):
        super().__init__(transport=transport, timeout=timeout)
        self.api_url = (api_url or settings.TWILIO_API_URL).rstrip("/")

    def normalize(self, credential: Credential) -> Credential:
        self.validate_required_fields(credential)
        if not credential.account_id.startswith("AC"):
            raise ProviderError("Twilio account SID must start with 'AC'")
        keyword = str(credential.options["sandbox_keyword"]).strip().lower()
        if keyword.startswith("join "):
            keyword = keyword[len("join "):].strip()
        credential.options["sandbox_keyword"] = keyword
        return credential

    def probe_reachability(self, credential: Credential) -> ProbeResult:
        def probe(client: httpx.Client) -> Dict[str, Any]:
            response = self.request_json(
                client, "GET", f"{self.api_url}/Accounts/{credential.account_id}.json",
                auth=(credential.account_id, credential.access_token),
            )
            try:
                data = response.json()
            except ValueError:
                raise ProviderError("TWILIO_SANDBOX: response is not valid JSON")
            if not isinstance(data, dict):
                raise ProviderError("TWILIO_SANDBOX: unexpected response shape")

            if data.get("status") != "active":
                raise ProviderError(f"TWILIO_SANDBOX: account status is '{data.get('status')}'")

            return {
                "friendly_name": data.get("friendly_name"),
                "sandbox_number": credential.options.get("sandbox_number"),
            }

        return self.run_probe(credential, probe)

    def issue_activation_token(self, credential: Credential) -> str:
        return f"join {credential.options['sandbox_keyword']}"
