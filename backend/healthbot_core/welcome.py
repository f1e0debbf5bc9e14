from __future__ import annotations

import re

from .models import HealthcareContext, PrivacyStyle

_EMPHASIS_RE = re.compile(r"\*+")

CONTEXT_COPY: dict[HealthcareContext, dict] = {
    HealthcareContext.SYMPTOM_CHECKING: {
        "title": "Symptom Checking Assistant",
        "description": (
            "I'm here to help you understand your symptoms and provide general health guidance. "
            "I can help you identify potential causes, suggest when to seek professional care, "
            "and offer general wellness advice."
        ),
        "capabilities": [
            "Assess common symptoms and their possible causes",
            "Provide general health information and education",
            "Suggest when to consult healthcare professionals",
            "Offer preventive care and wellness tips",
        ],
        "limitations": [
            "I cannot provide medical diagnosis",
            "I cannot prescribe medications",
            "Always consult healthcare professionals for specific medical concerns",
        ],
    },
    HealthcareContext.MENTAL_HEALTH_SUPPORT: {
        "title": "Mental Health Support Assistant",
        "description": (
            "I'm here to provide emotional support and help you explore coping strategies. "
            "I can offer a listening ear, suggest stress management techniques, and help you "
            "identify when professional help might be beneficial."
        ),
        "capabilities": [
            "Provide emotional support and active listening",
            "Suggest coping strategies and stress management techniques",
            "Help identify when professional mental health care might be needed",
            "Offer general wellness and self-care advice",
        ],
        "limitations": [
            "I am not a replacement for professional therapy",
            "I cannot provide clinical mental health diagnosis",
            "For crisis situations, please contact emergency services or crisis hotlines",
        ],
    },
    HealthcareContext.CHRONIC_CARE_MANAGEMENT: {
        "title": "Chronic Care Management Assistant",
        "description": (
            "I'm here to support you in managing your chronic health conditions. "
            "I can help with education about your conditions, suggest lifestyle modifications, "
            "and assist with tracking strategies."
        ),
        "capabilities": [
            "Provide education about chronic conditions",
            "Suggest lifestyle modifications and self-care strategies",
            "Help with medication adherence and tracking",
            "Support communication with healthcare providers",
        ],
        "limitations": [
            "I cannot replace your doctor's treatment plan",
            "Always follow your healthcare provider's advice",
            "I cannot adjust medications or treatment protocols",
        ],
    },
}

PRIVACY_COPY: dict[PrivacyStyle, dict] = {
    PrivacyStyle.MINIMAL: {
        "title": "Minimal Privacy Disclosure",
        "description": (
            "We maintain minimal data collection practices. Your conversations are private and "
            "secure, and we do not collect personal identifying information."
        ),
        "details": [
            "No personal identifiers are collected",
            "Conversation data is used only for service improvement",
            "Data is stored securely and encrypted",
        ],
    },
    PrivacyStyle.CONTEXTUAL: {
        "title": "Contextual Privacy Disclosure",
        "description": (
            "We collect conversation data to provide personalized health guidance. Sensitive "
            "information is handled with extra care and only used for providing relevant health support."
        ),
        "details": [
            "Conversation data helps provide better health guidance",
            "Sensitive topics trigger additional privacy protections",
            "Data is anonymized and used only for service improvement",
        ],
    },
    PrivacyStyle.PROGRESSIVE: {
        "title": "Progressive Privacy Disclosure",
        "description": (
            "We provide comprehensive privacy information to ensure transparency. Your data is "
            "encrypted, anonymized, and never shared with third parties."
        ),
        "details": [
            "Detailed privacy information is available throughout our conversation",
            "Data is encrypted and anonymized",
            "No data is shared with third parties",
            "You can request data deletion at any time",
        ],
    },
}


def strip_emphasis(text: str) -> str:
    return _EMPHASIS_RE.sub("", text)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def build_welcome_message(context: HealthcareContext, privacy_style: PrivacyStyle) -> str:
    context_copy = CONTEXT_COPY[context]
    privacy_copy = PRIVACY_COPY[privacy_style]
    sections = [
        "# Welcome to Your Healthcare Assistant",
        f"## {context_copy['title']}",
        context_copy["description"],
        f"### What I Can Help With:\n{_bullets(context_copy['capabilities'])}",
        f"### Important Limitations:\n{_bullets(context_copy['limitations'])}",
        "---",
        f"## {privacy_copy['title']}",
        privacy_copy["description"],
        f"### Privacy Practices:\n{_bullets(privacy_copy['details'])}",
        "---",
        (
            "**Ready to begin?** Please share your health concerns or questions, and I'll do my best "
            "to help while respecting your privacy and maintaining appropriate boundaries."
        ),
    ]
    return strip_emphasis("\n\n".join(sections))
