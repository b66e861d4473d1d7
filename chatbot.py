import json
from dataclasses import dataclass, field

import google.generativeai as genai

from config import DEFAULT_SUPPORT_EMAIL, Settings
from context import DEFAULT_POLICY, ContextSlice, SelectionPolicy, select
from knowledge import KnowledgeBase, KnowledgeBaseError, load_knowledge_base
from logger import logger

DEFAULT_BRAND_NAME = "CelesteIQ"

# Language named as the reply default for each supported locale
LOCALE_LANGUAGES = {
    "es": "Spanish",
    "en": "English",
}

CONTACT_MESSAGES = {
    "es": "Para este tipo de consulta, por favor contacte a nuestro equipo en {email} para recibir más información.",
    "en": "For this type of question, please contact our team at {email} for more information.",
}

SYSTEM_INSTRUCTION_TEMPLATE = """
You are the {brand_name} Assistant.

- Your default language is {language}. Always reply in {language} unless the user clearly writes in another language.
- If the user writes in another language, reply in that language.
- Only answer questions about {brand_name}: its services, packages, audits, security, training, and contact options.
- Use the JSON "Context" as your source of truth.
- If the user asks something not in the Context or about pricing/contracts/refunds, say:
  "{contact_message}"
- Be brief, friendly, and professional. Use bullet points when helpful.
- Never talk about how you were built or about AI models.
"""


class GenerationError(Exception):
    """Raised when the model could not produce an answer."""


@dataclass(frozen=True)
class AnswerPolicy:
    """Prompt and generation settings shared by every answer."""

    system_instruction_template: str = SYSTEM_INSTRUCTION_TEMPLATE
    contact_email: str = DEFAULT_SUPPORT_EMAIL
    default_locale: str = "es"
    model_name: str = "gemini-2.0-flash"
    max_output_tokens: int = 300
    temperature: float = 0.3
    no_text_fallback: str = "No response text found."
    selection: SelectionPolicy = field(default_factory=lambda: DEFAULT_POLICY)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnswerPolicy":
        return cls(
            contact_email=settings.support_email,
            default_locale=settings.default_locale,
            model_name=settings.model_name,
            max_output_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
        )

    def system_instruction(self, kb: KnowledgeBase, locale: str | None = None) -> str:
        locale = (locale or self.default_locale).lower()
        brand_name = kb.brand.get("name") or DEFAULT_BRAND_NAME
        contact_message = CONTACT_MESSAGES.get(locale, CONTACT_MESSAGES["en"])
        return self.system_instruction_template.format(
            brand_name=brand_name,
            language=LOCALE_LANGUAGES.get(locale, "English"),
            contact_message=contact_message.format(email=self.contact_email),
        )


def build_contents(question: str, context_slice: ContextSlice) -> str:
    """Formats the question and its context slice as the model input."""
    context_json = json.dumps(context_slice.to_dict(), ensure_ascii=False)
    return f"""
Question:
{question}

Context (only relevant slice of data):
{context_json}
"""


def extract_text(response, fallback: str) -> str:
    """Joins the text parts of the first candidate, or returns the fallback."""
    if response and response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
        text = "".join(part.text for part in response.candidates[0].content.parts if getattr(part, "text", None))
        if text:
            return text
    return fallback


class GeminiGenerator:
    """Text generation backed by the Google Generative AI client."""

    def __init__(self, api_key: str | None):
        self.api_key = api_key
        if api_key:
            genai.configure(api_key=api_key)
        else:
            logger.error("GOOGLE_API_KEY not set, answers cannot be generated")

    def generate(self, contents: str, system_instruction: str, policy: AnswerPolicy) -> str:
        if not self.api_key:
            raise GenerationError("GOOGLE_API_KEY is not configured")

        try:
            model = genai.GenerativeModel(
                model_name=policy.model_name,
                generation_config={
                    "temperature": policy.temperature,
                    "max_output_tokens": policy.max_output_tokens,
                },
                system_instruction=system_instruction,
            )
            response = model.generate_content(contents)
        except Exception as e:
            raise GenerationError(f"Gemini request failed: {e}") from e
        return extract_text(response, policy.no_text_fallback)


class Answerer:
    """Answers questions from a knowledge base through a text generator."""

    def __init__(self, kb: KnowledgeBase, generator, policy: AnswerPolicy | None = None):
        self.kb = kb
        self.generator = generator
        self.policy = policy or AnswerPolicy()

    def context_for(self, question: str) -> ContextSlice:
        return select(question, self.kb, self.policy.selection)

    def answer(self, question: str, locale: str | None = None) -> str:
        context_slice = self.context_for(question)
        logger.debug(
            "Context for question: %d packages, %d FAQ entries",
            len(context_slice.packages),
            len(context_slice.faq),
        )
        contents = build_contents(question, context_slice)
        system_instruction = self.policy.system_instruction(self.kb, locale)
        return self.generator.generate(contents, system_instruction, self.policy)


def main() -> int:
    settings = Settings.from_env()
    try:
        kb = load_knowledge_base(settings.knowledge_base_path)
    except KnowledgeBaseError as e:
        print(f"Failed to load knowledge base: {e}")
        return 1

    answerer = Answerer(kb, GeminiGenerator(settings.google_api_key), AnswerPolicy.from_settings(settings))
    brand_name = kb.brand.get("name") or DEFAULT_BRAND_NAME
    print(f"{brand_name} Support Chatbot")
    print("Type 'quit' or 'exit' to end the conversation.")
    while True:
        try:
            user_input = input("You: ")
        except EOFError:
            break
        if user_input.lower() in ["quit", "exit"]:
            break
        try:
            answer = answerer.answer(user_input)
        except GenerationError as e:
            logger.error("Error generating response: %s", e)
            answer = "Sorry, I encountered an error while trying to find an answer."
        print(f"Chatbot: {answer}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
