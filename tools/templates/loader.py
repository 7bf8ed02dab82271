"""Message template loading."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from logger import get_logger

logger = get_logger()


class MessageTemplates:
    """Loads insight message templates from a YAML file and renders them."""

    def __init__(self, templates_dir: Optional[Path] = None, name: str = "insights"):
        """Initialize the template set.

        Args:
            templates_dir: Directory containing template YAML files.
                           Defaults to tools/templates/ in the project.
            name: Template file name without the .yaml extension.
        """
        self.templates_dir = templates_dir or Path(__file__).parent
        self.name = name
        self._messages: Optional[Dict[str, str]] = None

    @property
    def messages(self) -> Dict[str, str]:
        """The template strings, loaded on first use.

        Raises:
            FileNotFoundError: If the template file doesn't exist.
            yaml.YAMLError: If the YAML is invalid.
        """
        if self._messages is None:
            template_file = self.templates_dir / f"{self.name}.yaml"
            if not template_file.exists():
                raise FileNotFoundError(f"Template file not found: {template_file}")

            logger.debug(f"Loading message templates from {template_file}")
            with open(template_file, "r") as f:
                config = yaml.safe_load(f) or {}

            self._messages = config.get("messages", {})

        return self._messages

    def render(self, key: str, **variables: Any) -> str:
        """Render one template.

        Raises:
            KeyError: If the template or one of its variables is missing.
        """
        return self.messages[key].format(**variables)


_default_templates: Optional[MessageTemplates] = None


def get_templates() -> MessageTemplates:
    """Get the shared template set for the bundled insights.yaml."""
    global _default_templates
    if _default_templates is None:
        _default_templates = MessageTemplates()
    return _default_templates
