"""Prompt composition for listing and auto-response generation."""

import logging
from typing import Optional

from app.schemas.generation_models import ComposedPrompt
from app.schemas.catalog_models import ListingTemplate, Platform, ProductProfile


logger = logging.getLogger(__name__)


RAW_JSON_INSTRUCTION = (
    "Respond with raw JSON only. Do not include code blocks, markdown, "
    "or any other formatting."
)


def _product_details(product: ProductProfile) -> str:
    """Render the product block shared by both prompts."""
    lines = [f"- Product: {product.summary}"]
    lines.extend(f"- {spec}" for spec in product.specifications)
    lines.append(f"- Retail Price: {product.retail_price}")
    lines.append(f"- Asking Price: {product.asking_price}")
    lines.append(f"- Location: {product.location}")
    lines.extend(f"- {note}" for note in product.notes)
    return "\n".join(lines)


def compose_listing_prompt(
    product: ProductProfile,
    platform: Platform,
    template: ListingTemplate,
    custom_prompt: Optional[str] = None
) -> ComposedPrompt:
    """Build the prompts for a platform-optimized listing.

    Args:
        product: Product being sold
        platform: Target marketplace
        template: Base listing template for the platform
        custom_prompt: Optional extra instructions from the seller

    Returns:
        System and user prompt text
    """
    system = (
        "You are an expert marketplace listing optimizer specializing in "
        "high-value specialty items. Your task is to create compelling, "
        f"platform-optimized listings for a {product.name}.\n\n"
        f"PRODUCT DETAILS:\n{_product_details(product)}\n\n"
        f"TARGET AUDIENCE: {product.target_audience}.\n\n"
        f"PLATFORM: {platform.display_name}\n"
        f"PLATFORM DESCRIPTION: {platform.description}\n\n"
        f"BASE TEMPLATE TITLE: {template.title}\n"
        f"BASE TEMPLATE DESCRIPTION: {template.description}\n\n"
        "REQUIREMENTS:\n"
        f"- Keep price at {product.asking_price}, non-negotiable\n"
        "- Emphasize professional-grade quality vs cheap alternatives\n"
        "- Highlight energy efficiency and battery compatibility\n"
        "- Include all technical specifications\n"
        "- Maintain pickup-only requirement\n"
        "- Appeal to target audience"
    )

    if custom_prompt:
        system += f"\n\nADDITIONAL CUSTOMIZATION REQUEST: {custom_prompt}"

    system += (
        "\n\nPlease respond in JSON format with the following structure:\n"
        "{\n"
        f'  "title": "Optimized title for {platform.display_name}",\n'
        '  "description": "Complete optimized description"\n'
        "}\n\n"
        f"{RAW_JSON_INSTRUCTION}"
    )

    if custom_prompt:
        focus = f"Focus on: {custom_prompt}"
    else:
        focus = "Use the base template as reference but optimize for this platform."

    user = f"Create an optimized listing for {platform.display_name}. {focus}"

    return ComposedPrompt(system=system, user=user)


def compose_response_prompt(
    product: ProductProfile,
    trigger: str,
    category: str
) -> ComposedPrompt:
    """Build the prompts for an automated buyer-inquiry response.

    Args:
        product: Product being sold
        trigger: Buyer message phrase the response answers
        category: Response category

    Returns:
        System and user prompt text
    """
    system = (
        "You are an expert at creating professional, automated response "
        "templates for marketplace inquiries. You're helping sell a "
        f"{product.name}.\n\n"
        f"PRODUCT CONTEXT:\n{_product_details(product)}\n"
        f"- Target audience: {product.target_audience}\n\n"
        "STRATEGY PRINCIPLES:\n"
        "- Filter out unserious buyers early\n"
        "- Emphasize firm pricing\n"
        "- Pre-qualify leads efficiently\n"
        "- Professional but friendly tone\n"
        "- Include all essential information upfront\n"
        "- End with a qualifying question when appropriate\n\n"
        f'TRIGGER: "{trigger}"\n'
        f"CATEGORY: {category}\n\n"
        "Create a professional auto-response that addresses this trigger "
        "effectively. The response should:\n"
        "1. Be helpful and informative\n"
        "2. Include relevant product details\n"
        "3. Maintain firm pricing stance\n"
        "4. End with a qualifying question if appropriate\n"
        "5. Be concise but complete (2-4 sentences max)\n\n"
        "Please respond in JSON format with:\n"
        "{\n"
        '  "response": "Your generated auto-response message"\n'
        "}\n\n"
        f"{RAW_JSON_INSTRUCTION}"
    )

    user = f'Generate an auto-response for trigger "{trigger}" in category {category}.'

    return ComposedPrompt(system=system, user=user)
