from flask import Flask, abort, jsonify, request
from flask_cors import CORS

from chatbot import AnswerPolicy, Answerer, GeminiGenerator, GenerationError
from config import Settings, validate_environment_variables
from knowledge import KnowledgeBase, load_knowledge_base
from logger import logger

INVALID_REQUEST_TEXT = "Invalid request: a non-empty 'question' is required."
SERVER_ERROR_TEXT = "Server error generating response."


def create_app(
    settings: Settings | None = None,
    knowledge_base: KnowledgeBase | None = None,
    generator=None,
) -> Flask:
    """
    Build the Flask application.

    The knowledge base is loaded once here and shared by every request.
    ``knowledge_base`` and ``generator`` can be passed in to skip loading
    the JSON file or calling Gemini (tests, alternative backends).
    """
    if settings is None:
        validate_environment_variables()
        settings = Settings.from_env()
    if knowledge_base is None:
        knowledge_base = load_knowledge_base(settings.knowledge_base_path)
    if generator is None:
        generator = GeminiGenerator(settings.google_api_key)

    answerer = Answerer(knowledge_base, generator, AnswerPolicy.from_settings(settings))

    app = Flask(__name__)
    CORS(app)
    app.config["SETTINGS"] = settings
    app.extensions["answerer"] = answerer

    def answer_for_locale(locale: str):
        data = request.get_json(silent=True)
        question = data.get("question") if isinstance(data, dict) else None

        if not isinstance(question, str) or not question.strip():
            logger.warning("Rejected answer request without a usable question")
            return jsonify({"text": INVALID_REQUEST_TEXT}), 400

        logger.info("Received question (locale=%s, %d chars)", locale, len(question))
        try:
            text = answerer.answer(question, locale)
        except GenerationError:
            logger.exception("Error generating response")
            return jsonify({"text": SERVER_ERROR_TEXT}), 500
        return jsonify({"text": text})

    @app.route("/api/answer", methods=["POST"])
    def answer():
        return answer_for_locale(settings.default_locale)

    @app.route("/<locale>/api/answer", methods=["POST"])
    def localized_answer(locale):
        locale = locale.lower()
        if locale not in settings.locales:
            abort(404)
        return answer_for_locale(locale)

    @app.route("/")
    def index():
        return "Chatbot backend is running."

    return app


if __name__ == "__main__":
    # Use gunicorn ("gunicorn 'app:create_app()'") in production
    settings = Settings.from_env()
    create_app(settings).run(host="0.0.0.0", port=settings.port)
