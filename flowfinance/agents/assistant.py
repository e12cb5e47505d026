"""
Assistant Integration for FlowFinance

DESIGN DECISION: The chat assistant is an automated caller like any other.
It goes through the same tracker operations the UI uses, with one
difference: its inserts pass through the duplicate guard.

CRITICAL BOUNDARIES:

1. TOOLBOX (tool handlers):
   - CAN: List wallets, look up transactions, add INCOME or EXPENSE
   - CANNOT: Delete, edit balances or change budgets
   - MUST: Report DUPLICATE_DETECTED back instead of inserting twice

2. INSIGHT AGENT:
   - CAN: Summarise recent activity into advice
   - CANNOT: See anything beyond the wallets and transactions it is given

The LLM is a TRANSLATOR, not an ORACLE.
Every number it talks about comes out of the ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError as PydanticValidationError

from flowfinance.config import GeminiSettings, get_settings
from flowfinance.errors import DuplicateDetectedError, LedgerError
from flowfinance.models.ledger import Transaction, TransactionType, Wallet
from flowfinance.models.query import TransactionQuery
from flowfinance.validation import parse_date

if TYPE_CHECKING:
    from flowfinance.orchestrator import FinanceTracker

logger = structlog.get_logger(__name__)

DEFAULT_DESCRIPTION = "AI Transaction"
DEFAULT_CATEGORY = "General"

INSIGHT_TRANSACTION_LIMIT = 30
INSIGHT_FALLBACK = "Service unavailable."
INSIGHT_KEY_MISSING = "API Key Missing"
INSIGHT_EMPTY = "No insight generated."

LANGUAGES = {
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "zh": "Chinese (Simplified)",
    "hi": "Hindi",
    "ar": "Arabic",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
}

SYSTEM_INSTRUCTION = """You are FlowAI, a friendly and expert financial assistant inside the FlowFinance app.
You help the user track expenses, understand their money and manage their budget.

Data rules:
- NEVER guess balances or transaction history. Only use the data you are given.
- Use Markdown. Use **bold** for amounts and important terms. Use lists for summaries.
- Be concise and avoid jargon."""


class AssistantToolbox:
    """
    Tool handlers the chat transport relays to.

    Every handler returns a plain dict so any transport can pass it
    back to the model verbatim.
    """

    def __init__(self, tracker: "FinanceTracker"):
        self._tracker = tracker

    def get_wallets(self) -> dict:
        result = self._tracker.queries.list_wallets()
        return {"wallets": result.results}

    def get_transactions(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        category: Optional[str] = None,
        wallet_name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> dict:
        query = TransactionQuery(
            start_date=start_date,
            end_date=end_date,
            category=category,
            wallet_name=wallet_name,
            limit=limit or self._tracker.settings.recent_transactions_limit,
        )
        result = self._tracker.queries.execute(query)
        if not result.success:
            return {"error": result.error_message}
        return {"count": result.result_count, "transactions": result.results}

    def add_transaction(
        self,
        amount: Any,
        type: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
        wallet_name: Optional[str] = None,
        date: Optional[str] = None,
        confirmed: bool = False,
    ) -> dict:
        """
        Add an INCOME or EXPENSE on the user's behalf.

        The wallet is matched by name or institution and falls back to the
        first wallet. An unparseable date means "now". Anything other than
        INCOME is recorded as an EXPENSE.
        """
        wallets = self._tracker.list_wallets()
        if not wallets:
            return {"error": "No wallets available. Ask user to create one."}

        target = self._tracker.queries.find_wallet(wallet_name) or wallets[0]
        moment = self._resolve_date(date, self._tracker.now())
        tx_type = (
            TransactionType.INCOME
            if str(type).strip().upper() == TransactionType.INCOME.value
            else TransactionType.EXPENSE
        )
        description = str(description) if description else DEFAULT_DESCRIPTION

        try:
            self._tracker.add_transaction(
                wallet_id=target.id,
                amount=amount,
                type=tx_type,
                category=str(category) if category else DEFAULT_CATEGORY,
                description=description,
                date=moment,
                via_automated_caller=True,
                confirmed=confirmed,
            )
        except DuplicateDetectedError:
            return {
                "result": "DUPLICATE_DETECTED",
                "message": "Duplicate transaction found. Ask user if they want to proceed.",
            }
        except LedgerError as e:
            return {"error": str(e)}

        return {
            "result": "SUCCESS",
            "message": f"Successfully added {amount} to {target.name} for {description}.",
        }

    def dispatch(self, name: str, args: Optional[dict] = None) -> dict:
        """
        Route a tool call by its wire name (getWallets, getTransactions, addTransaction).

        Argument names are accepted in camelCase as the model sends them.
        """
        args = args or {}
        try:
            if name == "getWallets":
                return self.get_wallets()
            if name == "getTransactions":
                return self.get_transactions(
                    start_date=args.get("startDate"),
                    end_date=args.get("endDate"),
                    category=args.get("category"),
                    wallet_name=args.get("walletName"),
                    limit=args.get("limit"),
                )
            if name == "addTransaction":
                return self.add_transaction(
                    amount=args.get("amount"),
                    type=args.get("type", ""),
                    description=args.get("description"),
                    category=args.get("category"),
                    wallet_name=args.get("walletName"),
                    date=args.get("date"),
                    confirmed=bool(args.get("confirmed", False)),
                )
        except (LedgerError, PydanticValidationError) as e:
            logger.warning("tool_execution_failed", tool=name, error=str(e))
            return {"error": str(e) or "Tool execution failed"}
        return {"error": f"Unknown tool: {name}"}

    @staticmethod
    def _resolve_date(value: Optional[str], now: datetime) -> datetime:
        if not value:
            return now
        try:
            return parse_date(value)
        except LedgerError:
            logger.info("tool_date_defaulted", value=value)
            return now


class InsightAgent:
    """
    Short financial-health analysis from Gemini.

    BOUNDARIES:
    - Only sees the 30 most recent transactions and the wallet balances
    - Returns a fixed message instead of raising when the model call fails
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings
        self._model = model

    def _configure_genai(self) -> Optional[Any]:
        """Configure Google Generative AI. Returns None without an API key."""
        if self._model is not None:
            return self._model
        if self._settings is None:
            try:
                self._settings = get_settings().gemini
            except PydanticValidationError:
                logger.warning("gemini_not_configured")
                return None
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )
        return self._model

    @staticmethod
    def build_prompt(
        transactions: list[Transaction],
        wallets: list[Wallet],
        language: str = "en",
    ) -> str:
        recent = [
            {
                "date": t.date.date().isoformat(),
                "desc": t.description,
                "amt": float(t.amount),
                "type": t.type.value,
                "cat": t.category,
            }
            for t in transactions[:INSIGHT_TRANSACTION_LIMIT]
        ]
        wallet_summary = ", ".join(
            f"{w.name}: {w.currency}{w.balance.quantize(Decimal('0.01'))}" for w in wallets
        )
        target_language = LANGUAGES.get(language, "English")

        return f"""Current Wallets: {wallet_summary}
Recent Transactions: {recent}

Analyze the financial health, identify trends, and give 1 specific optimization tip.
Respond in {target_language}. Use Markdown."""

    async def generate_insight(
        self,
        transactions: list[Transaction],
        wallets: list[Wallet],
        language: str = "en",
    ) -> str:
        """
        Args:
            transactions: Most recent first; only the first 30 are sent
            wallets: Wallets whose balances are summarised
            language: Two-letter code for the response language
        """
        model = self._configure_genai()
        if model is None:
            return INSIGHT_KEY_MISSING

        prompt = self.build_prompt(transactions, wallets, language)
        try:
            response = await model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("insight_generation_failed", error=str(e))
            return INSIGHT_FALLBACK
        return text or INSIGHT_EMPTY
