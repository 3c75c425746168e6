"""The giveaway entry form shipped with the service."""

from __future__ import annotations

from intake.models.form import FormConfig

SAMPLE_FORM = FormConfig.model_validate(
    {
        "title": "Social Giveaway Entry",
        "description": "Complete the form to enter.",
        "questions": [
            {
                "id": "name",
                "type": "text",
                "title": "Name",
                "placeholder": "Your full name",
                "required": True,
            },
            {
                "id": "contact_info",
                "type": "contact",
                "title": "Email or Phone Number",
                "description": "Choose at least one method and provide your details",
                "required": True,
                "options": [
                    {"value": "email", "label": "Email"},
                    {"value": "phone", "label": "Phone"},
                ],
            },
            {
                "id": "platform",
                "type": "checkbox",
                "title": "Social Media Platform(s) you will be posting on?",
                "description": "Select all that apply (Instagram, Facebook, TikTok)",
                "required": True,
                "validation": {"min": 1, "message": "Select at least one platform."},
                "options": [
                    {"value": "instagram", "label": "Instagram"},
                    {"value": "facebook", "label": "Facebook"},
                    {"value": "tiktok", "label": "TikTok"},
                ],
            },
            {
                "id": "social_media_id",
                "type": "text",
                "title": "Social Media @",
                "description": "Enter your account url",
                "placeholder": "@yourhandle",
                "required": True,
            },
            {
                "id": "address",
                "type": "textarea",
                "title": "Mailing Address",
                "description": "Where the prize check is mailed if you win",
                "placeholder": "Street, city, state and ZIP code",
                "required": True,
            },
            {
                "id": "agreements",
                "type": "checkbox",
                "title": "I agree",
                "description": "Please check all three boxes",
                "required": True,
                "validation": {"min": 3, "max": 3, "message": "You must agree to all three."},
                "options": [
                    {"value": "age_over_18", "label": "I confirm I am over 18 years of age. (required)"},
                    {"value": "agree_rules", "label": "I have read and agree to the official competition rules. (required)"},
                    {"value": "following_accounts", "label": "I am following the sponsor's social media accounts. (required)"},
                ],
            },
        ],
        "successMessage": "Thank you! Your entry has been submitted.",
    }
)

__all__ = ["SAMPLE_FORM"]
