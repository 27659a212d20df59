"""
WhatsApp Cloud API messaging provider

The seller's business number is registered with Meta and identified by its
phone number id; a system user access token authorizes Graph API calls.
Two-way messaging works immediately, so no activation step is needed.
"""

from typing import Any, Dict, Optional

import httpx

from ...config import settings
from ...credentials.schemas import Credential
from ..base_provider import BaseProvider
from ..ports import MessagingProviderPort, ProviderError, ProbeResult


class WhatsAppCloudProvider(BaseProvider, MessagingProviderPort):
    """
    Credential:
        account_id: WhatsApp phone number id
        access_token: Graph API access token
        options.waba_id: WhatsApp Business Account id (optional, informational)
    """

    provider_type = "WHATSAPP_CLOUD"
    requires_activation = False
    required_fields = ["account_id", "access_token"]

    def __init__(self, transport: Optional[httpx.BaseTransport] = None, timeout: Optional[float] = None,
                 graph_url: Optional[str] = None):
        super().__init__(transport=transport, timeout=timeout)
        self.graph_url = (graph_url or settings.WHATSAPP_GRAPH_URL).rstrip("/")

    def normalize(self, credential: Credential) -> Credential:
        self.validate_required_fields(credential)
        if not credential.account_id.isdigit():
            raise ProviderError("WhatsApp phone number id must be numeric")
        return credential

    def probe_reachability(self, credential: Credential) -> ProbeResult:
        def probe(client: httpx.Client) -> Dict[str, Any]:
            response = self.request_json(
                client, "GET", f"{self.graph_url}/{credential.account_id}",
                params={"fields": "display_phone_number,verified_name"},
                headers={"Authorization": f"Bearer {credential.access_token}"},
            )
            try:
                data = response.json()
            except ValueError:
                raise ProviderError("WHATSAPP_CLOUD: response is not valid JSON")
            if not isinstance(data, dict):
                raise ProviderError("WHATSAPP_CLOUD: unexpected response shape")

            if not data.get("display_phone_number"):
                raise ProviderError("WHATSAPP_CLOUD: phone number id is not registered")

            return {
                "display_phone_number": data.get("display_phone_number"),
                "verified_name": data.get("verified_name"),
                "waba_id": credential.options.get("waba_id"),
            }

        return self.run_probe(credential, probe)
