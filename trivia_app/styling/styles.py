"""Centralized styles for the dashboard widgets."""

from .color_palette import ColorPalette, Theme


class Styles:
    """Helper class to generate Qt stylesheets based on the current theme."""

    @staticmethod
    def get_main_window_style(theme: Theme = Theme.LIGHT) -> str:
        return f"""
            QMainWindow, QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
                font-family: 'Segoe UI', 'Roboto', sans-serif;
                font-size: 14px;
            }}
            QPushButton {{
                background-color: {ColorPalette.BUTTON_SECONDARY_BG.get(theme)};
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background-color: {ColorPalette.BUTTON_HOVER_BG.get(theme)};
            }}
            QPushButton:checked {{
                background-color: {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
                color: {ColorPalette.BUTTON_PRIMARY_TEXT.get(theme)};
                border: 1px solid {ColorPalette.BUTTON_PRIMARY_BG.get(theme)};
            }}
            QLineEdit, QPlainTextEdit, QComboBox {{
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
                padding: 4px;
            }}
            QListWidget, QTableWidget {{
                border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};
                border-radius: 4px;
            }}
        """

    @staticmethod
    def get_stat_card_style(theme: Theme = Theme.LIGHT) -> str:
        return (
            f"background-color: {ColorPalette.BACKGROUND_CARD.get(theme)};"
            f"border: 1px solid {ColorPalette.BORDER_PRIMARY.get(theme)};"
            "border-radius: 8px; padding: 8px;"
        )

    @staticmethod
    def get_stat_value_style(theme: Theme = Theme.LIGHT) -> str:
        return f"font-size: 20pt; font-weight: bold; color: {ColorPalette.ACCENT_PRIMARY.get(theme)};"

    @staticmethod
    def get_large_label_style() -> str:
        return "font-size: 16pt; font-weight: bold;"

    @staticmethod
    def get_status_style(ok: bool, theme: Theme = Theme.LIGHT) -> str:
        color = ColorPalette.SUCCESS if ok else ColorPalette.ERROR
        return f"color: {color.get(theme)};"

    @staticmethod
    def get_tv_style(theme: Theme = Theme.DARK) -> str:
        return f"""
            QWidget {{
                background-color: {ColorPalette.BACKGROUND_PRIMARY.get(theme)};
                color: {ColorPalette.TEXT_PRIMARY.get(theme)};
            }}
            QTableWidget {{
                font-size: 22pt;
                border: none;
                gridline-color: {ColorPalette.BORDER_PRIMARY.get(theme)};
            }}
            QHeaderView::section {{
                background-color: {ColorPalette.BACKGROUND_CARD.get(theme)};
                color: {ColorPalette.TEXT_SECONDARY.get(theme)};
                font-size: 14pt;
                border: none;
            }}
        """

    @staticmethod
    def get_rank_color(rank: int, theme: Theme = Theme.DARK) -> str:
        if rank == 1:
            return ColorPalette.RANK_GOLD.get(theme)
        if rank == 2:
            return ColorPalette.RANK_SILVER.get(theme)
        if rank == 3:
            return ColorPalette.RANK_BRONZE.get(theme)
        return ColorPalette.TEXT_PRIMARY.get(theme)
