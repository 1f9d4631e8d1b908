# Icon CDN templates keyed by provider prefix.
# `{icon}` is substituted with the requested icon name, e.g. "simple-icons:github".

from typing import Dict, Optional

ICON_PROVIDERS: Dict[str, str] = {
    # FontAwesome
    "fontawesome-solid": "https://unpkg.com/@fortawesome/fontawesome-free@6.5.1/svgs/solid/{icon}.svg",
    "fontawesome-regular": "https://unpkg.com/@fortawesome/fontawesome-free@6.5.1/svgs/regular/{icon}.svg",
    "fontawesome-brands": "https://unpkg.com/@fortawesome/fontawesome-free@6.5.1/svgs/brands/{icon}.svg",
    # Bootstrap Icons
    "bootstrap": "https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.1/icons/{icon}.svg",
    # Heroicons
    "heroicons-outline": "https://unpkg.com/heroicons@2.0.18/24/outline/{icon}.svg",
    "heroicons-solid": "https://unpkg.com/heroicons@2.0.18/24/solid/{icon}.svg",
    # Lucide
    "lucide": "https://unpkg.com/lucide-static@latest/icons/{icon}.svg",
    # Tabler
    "tabler": "https://unpkg.com/@tabler/icons@latest/icons/{icon}.svg",
    # Simple Icons (brands)
    "simple-icons": "https://cdn.jsdelivr.net/npm/simple-icons@v10/icons/{icon}.svg",
}


def resolve_icon_url(reference: Optional[str]) -> Optional[str]:
    """Expand provider:name shorthands; anything else is returned as a literal URL."""
    if not reference:
        return None
    ref = reference.strip()
    if not ref:
        return None
    provider, sep, name = ref.partition(":")
    if sep and provider:
        template = ICON_PROVIDERS.get(provider)
        if template:
            return template.replace("{icon}", name)
    return ref
