# ==============================================================================
# SPRITE CATALOGER MODULE
# ==============================================================================
# Scans a folder of container files and catalogs the recovered sprites.
#
# Each container file is assigned a category from keywords in its file name:
#   - Characters: character, char, npc, monster, mob
#   - Items:      item, weapon, armor
#   - Effects:    effect, spell, magic
#   - Maps:       map, tile, terrain
#   - Interface:  interface, ui, hud
#   - All:        anything else
#
# The catalog owns every container it loads. A category filter selects which
# files' entries are listed; "All" lists everything.
#
# Usage:
#   catalog = SpriteCatalog()
#   catalog.load_folder("data/sprites")
#   catalog.set_filter("Characters")
#   for file_index, entry in catalog.sprites():
#       print(catalog.files[file_index].path, entry.name)
# ==============================================================================

import fnmatch
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..extractors import PakReader, ParserSettings, SpriteContainer, SpriteEntry


# ==============================================================================
# CATEGORY MAPPING
# ==============================================================================
# Category name -> file name keywords. Order matters: first match wins.

ALL_CATEGORY = 'All'

DEFAULT_CATEGORIES = {
    'Characters': ['character', 'char', 'npc', 'monster', 'mob'],
    'Items': ['item', 'weapon', 'armor'],
    'Effects': ['effect', 'spell', 'magic'],
    'Maps': ['map', 'tile', 'terrain'],
    'Interface': ['interface', 'ui', 'hud'],
}


# ==============================================================================
# CATALOGED FILE DATA CLASS
# ==============================================================================
@dataclass
class SpriteFile:
    """
    One successfully loaded container file.

    Attributes:
        path (str):                 Full path of the file
        category (str):             Category from the file name
        container (SpriteContainer): Entries recovered from the file
    """
    path: str
    category: str
    container: SpriteContainer

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


@dataclass
class ScanFailure:
    path: str
    reason: str


# ==============================================================================
# SPRITE CATALOG CLASS
# ==============================================================================
class SpriteCatalog:
    """
    Catalog of sprites recovered from a folder of container files.

    Attributes:
        files (list):           Loaded SpriteFile objects, sorted by name
        failures (list):        Files that could not be read or resolved
        categories (dict):      Category name -> file name keywords
        current_filter (str):   Active category filter
    """

    def __init__(self, settings: Optional[ParserSettings] = None,
                 custom_categories: Dict[str, List[str]] = None):
        """
        Initialize the catalog.

        Args:
            settings: Parser settings for reading files
            custom_categories: Optional category mapping to replace the defaults
        """
        self.reader = PakReader(settings=settings)
        self.categories = custom_categories if custom_categories else DEFAULT_CATEGORIES.copy()

        self.files: List[SpriteFile] = []
        self.failures: List[ScanFailure] = []
        self.current_filter = ALL_CATEGORY
        self._filtered: List[Tuple[int, SpriteEntry]] = []

    # ==========================================================================
    # CATEGORIZATION
    # ==========================================================================

    def categorize_file(self, filename: str) -> str:
        """
        Get the category for a container file from its name.

        Example:
            >>> SpriteCatalog().categorize_file("Monster_Sprites.pak")
            'Characters'
        """
        lower = os.path.basename(filename).lower()
        for category, keywords in self.categories.items():
            if any(keyword in lower for keyword in keywords):
                return category
        return ALL_CATEGORY

    def list_categories(self) -> List[str]:
        return [ALL_CATEGORY] + list(self.categories.keys())

    # ==========================================================================
    # LOADING
    # ==========================================================================

    def load_folder(self, path: str, patterns: Sequence[str] = ("*.pak",),
                    progress_callback=None) -> int:
        """
        Load every matching file in a folder (non-recursive).

        Replaces anything loaded before. Files that cannot be opened or
        resolved are skipped and listed in self.failures.

        Args:
            path: Folder to scan
            patterns: Glob patterns matched case-insensitively against file names
            progress_callback: Optional callback(current, total, filename)

        Returns:
            Number of files loaded
        """
        self.files = []
        self.failures = []

        if not os.path.isdir(path):
            print(f"[ERROR] Folder not found: {path}")
            self._update_filtered()
            return 0

        lowered = [p.lower() for p in patterns]
        names = sorted(
            name for name in os.listdir(path)
            if os.path.isfile(os.path.join(path, name))
            and any(fnmatch.fnmatch(name.lower(), p) for p in lowered)
        )

        total = len(names)
        for idx, name in enumerate(names):
            if progress_callback:
                progress_callback(idx + 1, total, name)

            file_path = os.path.join(path, name)
            if not self.reader.read_file(file_path):
                self.failures.append(ScanFailure(file_path, self.reader.last_error or "unknown"))
                continue

            # Take the container; the reader keeps no reference to it
            container = self.reader.container
            self.reader.container = None

            self.files.append(SpriteFile(
                path=file_path,
                category=self.categorize_file(name),
                container=container,
            ))

        self._update_filtered()
        return len(self.files)

    # ==========================================================================
    # FILTERING AND ACCESS
    # ==========================================================================

    def set_filter(self, category: str):
        """
        Show only files in one category ("All" shows every file).

        Raises:
            ValueError: If the category is unknown
        """
        if category not in self.list_categories():
            raise ValueError(f"Unknown category: {category}")
        self.current_filter = category
        self._update_filtered()

    def sprites(self) -> List[Tuple[int, SpriteEntry]]:
        """Get (file_index, entry) pairs for the active filter."""
        return list(self._filtered)

    def sprite_count(self) -> int:
        return len(self._filtered)

    def sprite_at(self, row: int) -> Optional[SpriteEntry]:
        """Get the entry at a row of the filtered list, or None if out of range."""
        if row < 0 or row >= len(self._filtered):
            return None
        return self._filtered[row][1]

    def category_counts(self) -> Dict[str, int]:
        """Count loaded files per category."""
        counts: Dict[str, int] = {}
        for sprite_file in self.files:
            counts[sprite_file.category] = counts.get(sprite_file.category, 0) + 1
        return counts

    def _update_filtered(self):
        self._filtered = []
        for file_index, sprite_file in enumerate(self.files):
            if self.current_filter == ALL_CATEGORY or sprite_file.category == self.current_filter:
                for entry in sprite_file.container:
                    self._filtered.append((file_index, entry))
