"""External integrations: Figma REST client and Figma URL helpers."""
