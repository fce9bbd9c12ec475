"""Financial advice from a generative-text service.

Nothing in the aggregation core waits on this module; the presentation
layer runs ``generate_advice`` on its own and shows whatever comes back.
"""
import json
import logging
from typing import Iterable, List, Optional

import httpx

from budgetbook.aggregation import newest_first
from budgetbook.config import AppConfig
from budgetbook.domain import Transaction
from budgetbook.exceptions import AdviceUnavailableError

logger = logging.getLogger(__name__)

DIGEST_LIMIT = 50
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

DEMO_ADVICE = """
### Demo Mode
**API key missing.** To use real AI analysis, set `GEMINI_API_KEY`.

However, based on standard financial wisdom:
* Track every penny.
* Categorize your expenses.
* Set a budget for "Needs" vs "Wants".
""".strip()


def build_digest(transactions: Iterable[Transaction], limit: int = DIGEST_LIMIT) -> List[dict]:
    return [
        {
            "date": t.date.isoformat(),
            "type": t.type,
            "category": t.category,
            "amount": str(t.amount),
            "desc": t.description,
        }
        for t in newest_first(transactions, limit)
    ]


def build_prompt(digest: List[dict], currency: str, language: str) -> str:
    return f"""
Act as a personal financial advisor.
Analyze the following recent transactions (JSON format) and provide insights, identify spending patterns,
and give 3 concrete tips to save money.

The user's currency is {currency}.
Answer exclusively in the language code: "{language}".

Transactions:
{json.dumps(digest, ensure_ascii=False)}

If there are no transactions, give general financial advice for beginners.
Keep the tone friendly, encouraging, and professional.
Format with clear headings and bullet points using Markdown.
""".strip()


class GeminiAdvisor:
    """Client for the Gemini ``generateContent`` endpoint"""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        base_url: str = GEMINI_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url
        self.transport = transport

    async def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the generated text.

        Raises:
            AdviceUnavailableError: On timeout, HTTP errors, or an empty/invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    headers={"x-goog-api-key": self.api_key},
                    json={"contents": [{"parts": [{"text": prompt}]}]},
                )
                response.raise_for_status()
                data = response.json()
                parts = data["candidates"][0]["content"]["parts"]
                text = "".join(part.get("text", "") for part in parts).strip()
            except httpx.TimeoutException as e:
                raise AdviceUnavailableError(f"Advice service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AdviceUnavailableError(f"Advice service error: {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise AdviceUnavailableError(f"Advice service unreachable: {e}") from e
            except (KeyError, IndexError, TypeError, ValueError) as e:
                raise AdviceUnavailableError(f"Invalid response from advice service: {e}") from e

        if not text:
            raise AdviceUnavailableError("Advice service returned no text")
        return text


def advisor_from_config(config: AppConfig) -> Optional[GeminiAdvisor]:
    if not config.advice_enabled:
        return None
    return GeminiAdvisor(config.gemini_api_key, config.gemini_model, config.advice_timeout_seconds)


async def generate_advice(
    transactions: Iterable[Transaction],
    currency: str,
    language: str,
    advisor: Optional[GeminiAdvisor] = None,
) -> str:
    """Advice text for the most recent transactions, or the demo text without an advisor."""
    if advisor is None:
        return DEMO_ADVICE

    prompt = build_prompt(build_digest(transactions), currency, language)
    try:
        return await advisor.generate(prompt)
    except AdviceUnavailableError:
        logger.exception("Error generating advice")
        raise
