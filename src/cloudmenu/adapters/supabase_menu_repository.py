"""Supabase-backed menu translation repository."""

from dataclasses import dataclass

from supabase import Client

from cloudmenu.domain.translations import MenuRecord, TranslationEntry
from cloudmenu.services.translations import MenuTranslationRepository


@dataclass
class SupabaseMenuRepository(MenuTranslationRepository):
    """Supabase implementation for menus and their translations."""

    client: Client

    def get_menu(self, menu_id: str, user_id: str) -> MenuRecord | None:
        """Return the menu if it belongs to the user."""
        response = (
            self.client.table("menus")
            .select("id, user_id, default_language, menu_name, nom")
            .eq("id", menu_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return MenuRecord(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("menu_name") or row.get("nom") or "Menu",
            default_language=row.get("default_language"),
        )

    def has_language(self, menu_id: str, language_code: str) -> bool:
        """Return true when a menu_languages row exists."""
        response = (
            self.client.table("menu_languages")
            .select("id")
            .eq("menu_id", menu_id)
            .eq("language_code", language_code)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def add_language(self, menu_id: str, language_code: str, menu_title: str) -> None:
        """Insert a non-default language for the menu."""
        self.client.table("menu_languages").insert(
            {
                "menu_id": menu_id,
                "language_code": language_code,
                "is_default": False,
                "menu_title": menu_title,
            }
        ).execute()

    def list_categories(self, menu_id: str) -> list[TranslationEntry]:
        """Return categories of the menu."""
        response = (
            self.client.table("categories")
            .select("id, nom, description")
            .eq("menu_id", menu_id)
            .execute()
        )
        return [_to_entry("category", row) for row in response.data or []]

    def list_items(self, category_ids: list[str]) -> list[TranslationEntry]:
        """Return items that belong to the categories."""
        if not category_ids:
            return []
        response = (
            self.client.table("menu_items")
            .select("id, nom, description, category_id")
            .in_("category_id", category_ids)
            .execute()
        )
        return [_to_entry("item", row) for row in response.data or []]

    def insert_category_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        """Insert category_translations rows."""
        self.client.table("category_translations").insert(
            [
                {
                    "category_id": entry.id,
                    "language_code": language_code,
                    "nom": entry.name,
                    "description": entry.description,
                }
                for entry in entries
            ]
        ).execute()

    def insert_item_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        """Insert menu_item_translations rows."""
        self.client.table("menu_item_translations").insert(
            [
                {
                    "menu_item_id": entry.id,
                    "language_code": language_code,
                    "nom": entry.name,
                    "description": entry.description,
                }
                for entry in entries
            ]
        ).execute()


def _to_entry(entry_type: str, row: dict[str, object]) -> TranslationEntry:
    return TranslationEntry(
        type=entry_type,
        id=str(row["id"]),
        name=str(row.get("nom") or ""),
        description=str(row.get("description") or ""),
    )
