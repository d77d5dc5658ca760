"""
Rule-based replies used when no AI provider is configured or all of them fail.
"""

from coursebot.services.conversation import GenerationContext

ONBOARDING_MESSAGE = """Hi! I'm Kanchana, your personal instructor and mentor. Think of me as your guide on this journey. You can share anything with me, even failures, without fear. Every mistake is a stepping stone. Let's grow together.

I'm currently running in fallback mode since no AI providers are configured. For enhanced AI responses, please set up at least one API key in your .env file:

🔑 **Quick Setup (Choose one):**
• Hugging Face (Free): Get token at https://huggingface.co/settings/tokens
• Groq (Fast & Free): Get API key at https://console.groq.com/keys
• Together AI (Free $25): Get API key at https://api.together.xyz/settings/api-keys

Run `coursebot-test-keys` to check your keys once they are set.

For now, I can still help you with course recommendations and basic guidance. What would you like to explore?"""

NO_COURSES_RESPONSE = (
    "I'd love to help you find courses! It looks like there are no courses available right now. "
    "You can add some using the course management panel."
)

HELP_RESPONSE = """Hi, I'm Kanchana, your personal instructor and mentor. I can help you with:
• Finding and recommending courses
• Answering questions about course content
• Providing learning guidance and study tips
• Explaining course levels and requirements
• Guiding you from junior to senior engineering level

What would you like to explore today?"""

GREETING_RESPONSE = """Hello! I'm Kanchana, your personal instructor and mentor. Think of me as your guide on this journey. You can share anything with me, even failures, without fear. Every mistake is a stepping stone. Let's grow together.

Welcome to Kōchime! I'm here to help you discover amazing courses and achieve your learning goals. How can I assist you today?"""

THANKS_RESPONSE = (
    "You're very welcome! I'm here whenever you need help with courses or learning. "
    "Feel free to ask me anything else!"
)

MAX_RECOMMENDATIONS = 3

_COURSE_WORDS = ("course", "learn")
_HELP_WORDS = ("help", "what can you do")
_GREETING_WORDS = ("hello", "hi", "hey")
_THANKS_WORDS = ("thank",)


# ─────────────────────────────────────────────────────────
#  HELPERS
# ─────────────────────────────────────────────────────────

def _match(text: str, words) -> bool:
    return any(w in text for w in words)


def _recommend_courses(courses) -> str:
    if not courses:
        return NO_COURSES_RESPONSE
    picks = "\n".join(f"• {c.title} ({c.level})" for c in list(courses)[:MAX_RECOMMENDATIONS])
    return (
        "I can help you find the perfect course! Here are some recommendations:\n\n"
        f"{picks}\n\n"
        "Would you like to know more about any of these courses?"
    )


def _echo(user_message: str) -> str:
    return (
        f'I understand you\'re asking about "{user_message}". As your AI learning guide, '
        "I'm here to help with courses, learning paths, and educational guidance. "
        "Could you tell me more about what you'd like to learn or explore?"
    )


# ─────────────────────────────────────────────────────────
#  FALLBACK ENGINE
# ─────────────────────────────────────────────────────────

def fallback_response(
    user_message: str,
    context: GenerationContext,
    providers_configured: bool = True,
) -> str:
    """First matching rule wins; the order of the checks below is significant."""
    if not providers_configured:
        return ONBOARDING_MESSAGE

    text = user_message.lower()

    if _match(text, _COURSE_WORDS):
        return _recommend_courses(context.courses)
    if _match(text, _HELP_WORDS):
        return HELP_RESPONSE
    if _match(text, _GREETING_WORDS):
        return GREETING_RESPONSE
    if _match(text, _THANKS_WORDS):
        return THANKS_RESPONSE

    return _echo(user_message)
