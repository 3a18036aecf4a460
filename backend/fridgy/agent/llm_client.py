import json
import logging
import re
from typing import Any, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from fridgy.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_balanced_json_span(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object/array."""
    if not text:
        return None

    starts = []
    first_obj = text.find("{")
    first_arr = text.find("[")
    if first_obj != -1:
        starts.append((first_obj, "{", "}"))
    if first_arr != -1:
        starts.append((first_arr, "[", "]"))
    if not starts:
        return None

    start_idx, open_ch, close_ch = min(starts, key=lambda x: x[0])
    depth = 0
    in_string = False
    escape = False
    for i in range(start_idx, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def _extract_greedy_object(text: str) -> str | None:
    # Outermost braces, for responses where a stray quote breaks the balanced scan
    match = re.search(r"\{[\s\S]*\}", text)
    return match.group(0) if match else None


def _structured_text_candidates(raw_text: str) -> list[str]:
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates: list[str] = []
    fenced = _extract_fenced_block(text)
    if fenced:
        candidates.append(fenced)

    candidates.append(text)

    balanced = _extract_balanced_json_span(text)
    if balanced:
        candidates.append(balanced)

    greedy = _extract_greedy_object(text)
    if greedy:
        candidates.append(greedy)

    # Remove leading "json" token some models emit before the object.
    if text.lower().startswith("json"):
        trimmed = text[4:].lstrip(": \n\r\t")
        if trimmed:
            candidates.append(trimmed)
            balanced_trimmed = _extract_balanced_json_span(trimmed)
            if balanced_trimmed:
                candidates.append(balanced_trimmed)

    # Deduplicate while preserving order.
    seen = set()
    unique: list[str] = []
    for candidate in candidates:
        c = candidate.strip()
        if not c or c in seen:
            continue
        seen.add(c)
        unique.append(c)
    return unique


def parse_structured_text(raw_text: str, response_schema: type[T]) -> T:
    """Validate the first JSON candidate found in ``raw_text`` against the schema."""
    parse_candidates = _structured_text_candidates(raw_text)
    if not parse_candidates:
        raise ValueError("Model returned empty content for structured response")
    parse_errors: list[str] = []
    for candidate in parse_candidates:
        try:
            parsed_data = json.loads(candidate, strict=False)
            return response_schema.model_validate(parsed_data)
        except (json.JSONDecodeError, ValidationError, ValueError) as candidate_error:
            parse_errors.append(str(candidate_error))
            continue
    raise ValueError(
        "Unable to parse structured response after candidate extraction: "
        + " | ".join(parse_errors[:3])
    )


class LLMClient:
    """Provider-agnostic multimodal LLM client for OpenAI-compatible APIs."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT

        resolved_api_key = api_key or settings.LLM_API_KEY or settings.OPENAI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    def _chat_completion_kwargs(self, *, temperature: float | None) -> dict:
        """Build provider/model-compatible kwargs for chat completions."""
        model_name = (self.model_name or "").lower()
        # GPT-5 family rejects non-default temperature values in some OpenAI endpoints.
        if model_name.startswith("gpt-5"):
            return {}
        if temperature is None:
            return {}
        return {"temperature": temperature}

    @staticmethod
    def _user_content(user_prompt: str, image_url: str | None) -> str | list[dict[str, Any]]:
        if not image_url:
            return user_prompt
        return [
            {"type": "text", "text": user_prompt},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: type[T],
        *,
        image_url: str | None = None,
    ) -> T:
        """
        Generate a structured response matching the provided Pydantic schema.
        `image_url` may be a public URL or a base64 data URI; it is sent
        alongside the prompt as an image content part.
        """
        schema_json = json.dumps(response_schema.model_json_schema())

        augmented_system_prompt = (
            f"{system_prompt}\n\n"
            "CRITICAL: You must respond in ONLY valid JSON format matching the following JSON Schema. "
            "Do not include markdown code blocks (```json) or any conversational text around the JSON.\n\n"
            f"EXPECTED SCHEMA:\n{schema_json}"
        )

        attempt_prompts = [
            augmented_system_prompt,
            (
                f"{augmented_system_prompt}\n\n"
                "RETRY INSTRUCTIONS: Your previous response was invalid or incomplete. "
                "Return ONLY a single JSON object matching the schema. "
                "Do not add any prose, headings, markdown fences, or explanations."
            ),
        ]
        user_content = self._user_content(user_prompt, image_url)

        for attempt_idx, system_prompt_attempt in enumerate(attempt_prompts, start=1):
            try:
                logger.info(
                    "Issuing structured request to model %s (attempt %s/%s, image=%s)...",
                    self.model_name,
                    attempt_idx,
                    len(attempt_prompts),
                    bool(image_url),
                )
                response = await self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[
                        {"role": "system", "content": system_prompt_attempt},
                        {"role": "user", "content": user_content},
                    ],
                    **self._chat_completion_kwargs(
                        temperature=0 if attempt_idx > 1 else 0.2
                    ),
                )

                if getattr(response, "choices", None) is None:
                    logger.error(
                        "Received invalid response structure from %s: %s",
                        self.model_name,
                        response,
                    )
                    raise ValueError(
                        f"Provider {self.model_name} returned an invalid response."
                    )

                if len(response.choices) == 0:
                    logger.error("Received 0 choices from %s: %s", self.model_name, response)
                    raise ValueError(
                        f"Provider {self.model_name} returned no output. Try again or change model."
                    )

                text_response = response.choices[0].message.content or ""
                logger.debug(
                    "Received structured response from %s (attempt %s): %s...",
                    self.model_name,
                    attempt_idx,
                    text_response[:100],
                )
                return parse_structured_text(text_response, response_schema)

            except (json.JSONDecodeError, ValidationError, ValueError) as e:
                if attempt_idx < len(attempt_prompts):
                    logger.warning(
                        "Structured parsing failed for %s on attempt %s/%s: %s. Retrying...",
                        self.model_name,
                        attempt_idx,
                        len(attempt_prompts),
                        e,
                    )
                    continue
                logger.error("Error parsing structured LLM response from %s: %s", self.model_name, e)
                raise
            except Exception as e:
                logger.error("Error calling LLM provider: %s", e)
                raise

        raise RuntimeError("Structured generation failed without a captured error")

    async def generate_image(
        self, prompt: str, *, model_name: str | None = None, size: str = "1024x1024"
    ) -> str | None:
        """Generate one image and return its URL, or None when the provider gives nothing back."""
        model = model_name or settings.IMAGE_MODEL
        logger.info("Issuing image request to model %s...", model)
        response = await self.client.images.generate(
            model=model,
            prompt=prompt,
            n=1,
            size=size,
        )
        data = getattr(response, "data", None) or []
        if not data:
            logger.warning("Image model %s returned no images", model)
            return None
        return data[0].url
