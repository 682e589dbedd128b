"""Nodes for the button-click demo application."""

from blueprint_events.apps.button_click.nodes.click_logger import ClickLogger

__all__ = ["ClickLogger"]
