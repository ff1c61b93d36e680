"""
Gemini AI service for SQL tutoring feedback
"""
import google.generativeai as genai
from sqlquest.config import settings
import asyncio
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

UNAVAILABLE_FEEDBACK = "AI feedback is currently unavailable. Please check your solution manually."
ERROR_FEEDBACK = "Sorry, there was an error generating AI feedback. Please check your solution manually."

SYSTEM_INSTRUCTION = (
    "You are a helpful SQL tutor who provides clear, concise feedback on SQL queries. "
    "Your goal is to guide students to understand where their queries went wrong and how "
    "to fix them, without giving away complete solutions."
)


class GeminiService:
    """
    Tutoring bridge to the Gemini completion API

    Explains why a submission did not match the expected output. Every
    public method returns text and never raises: a missing API key yields
    a fixed notice, any API failure yields a fallback message.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        model: Any = None
    ):
        self.api_key = api_key
        self.model_name = model_name or settings.GEMINI_MODEL
        self.max_output_tokens = settings.AI_MAX_OUTPUT_TOKENS
        self.temperature = settings.AI_TEMPERATURE
        self.timeout_seconds = settings.AI_TIMEOUT_SECONDS
        self._model = model

        if self.api_key and self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(
                self.model_name,
                system_instruction=SYSTEM_INSTRUCTION
            )

    @property
    def available(self) -> bool:
        return self._model is not None

    async def explain(
        self,
        query: str,
        actual_results: Any,
        expected_results: Any,
        schema: str
    ) -> str:
        """
        Explain the gap between a learner's results and the expected ones

        Args:
            query: Learner's SQL
            actual_results: Rows the query produced
            expected_results: Rows the challenge expects
            schema: Challenge schema script

        Returns:
            Feedback text, or a fallback message
        """
        if not self.available:
            return UNAVAILABLE_FEEDBACK

        prompt = self._create_feedback_prompt(query, actual_results, expected_results, schema)
        return await self._generate(prompt)

    async def explain_error(self, query: str, error: str, schema: Optional[str] = None) -> str:
        """Explain why a query failed to execute"""
        if not self.available:
            return UNAVAILABLE_FEEDBACK

        prompt = self._create_error_prompt(query, error, schema)
        return await self._generate(prompt)

    async def _generate(self, prompt: str) -> str:
        messages = [{"role": "user", "parts": [prompt]}]

        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(
                    messages,
                    generation_config=genai.GenerationConfig(
                        max_output_tokens=self.max_output_tokens,
                        temperature=self.temperature
                    )
                ),
                timeout=self.timeout_seconds
            )

            # .text raises ValueError when the candidate was blocked
            feedback = (response.text or "").strip()
            if not feedback:
                raise ValueError("Empty completion")

            return feedback

        except asyncio.TimeoutError:
            logger.error(f"Gemini feedback timed out after {self.timeout_seconds}s")
            return ERROR_FEEDBACK
        except Exception as e:
            logger.error(f"Failed to generate AI feedback: {str(e)}")
            return ERROR_FEEDBACK

    def _create_feedback_prompt(
        self,
        query: str,
        actual_results: Any,
        expected_results: Any,
        schema: str
    ) -> str:
        """Create structured prompt for mismatch feedback"""

        return f"""
You are an expert SQL tutor helping a student understand why their query didn't produce the expected results.

DATABASE SCHEMA:
```sql
{schema}
```

THE STUDENT'S SQL QUERY:
```sql
{query}
```

ACTUAL RESULTS FROM THEIR QUERY:
```json
{self._pretty(actual_results)}
```

EXPECTED RESULTS:
```json
{self._pretty(expected_results)}
```

Please provide helpful feedback to the student about:
1. What's wrong with their query
2. Why it produced the results it did
3. What concepts they might be misunderstanding
4. A hint about how to fix it (without giving the full solution)

Keep your response under 300 words and focus on being educational rather than just pointing out errors.
"""

    def _create_error_prompt(self, query: str, error: str, schema: Optional[str]) -> str:
        schema_block = f"\nDATABASE SCHEMA:\n```sql\n{schema}\n```\n" if schema else ""

        return f"""
A student's SQL query failed to run.
{schema_block}
THE STUDENT'S SQL QUERY:
```sql
{query}
```

DATABASE ERROR:
{error}

Explain in plain language what the error means, point to the part of the query that causes it,
and give a hint for fixing it without writing the corrected query.

Keep your response under 300 words.
"""

    @staticmethod
    def _pretty(results: Any) -> str:
        if isinstance(results, str):
            try:
                results = json.loads(results)
            except json.JSONDecodeError:
                return results
        return json.dumps(results, indent=2, default=str)


# Global instance
gemini_service = GeminiService(api_key=settings.GEMINI_API_KEY)
