"""
Curriculum catalog - The static chapter/lesson hierarchy.

Provides:
- The built-in Grade 6 catalog (Kết nối tri thức)
- Loading an alternative catalog from a YAML file
"""

from pathlib import Path
from typing import Optional

import yaml

from toan6.schemas import ChapterOutline, LessonOutline


DEFAULT_CATALOG_DATA: list[dict] = [
    {
        "id": "chapter1",
        "title": "Chương I: Số tự nhiên",
        "lessons": [
            {"id": "c1l1", "title": "Bài 1: Tập hợp và các phần tử"},
            {"id": "c1l2", "title": "Bài 2: Các phép tính với số tự nhiên"},
            {"id": "c1l3", "title": "Bài 3: Lũy thừa với số mũ tự nhiên"},
            {"id": "c1l4", "title": "Bài 4: Tính chất chia hết của một tổng"},
            {"id": "c1l5", "title": "Bài 5: Số nguyên tố và hợp số"},
            {"id": "c1l6", "title": "Bài 6: Phân tích một số ra thừa số nguyên tố"},
            {"id": "c1l7", "title": "Bài 7: Ước chung và bội chung"},
        ],
    },
    {
        "id": "chapter2",
        "title": "Chương II: Số nguyên",
        "lessons": [
            {"id": "c2l1", "title": "Bài 8: Tập hợp số nguyên"},
            {"id": "c2l2", "title": "Bài 9: Cộng, trừ số nguyên"},
            {"id": "c2l3", "title": "Bài 10: Quy tắc dấu ngoặc"},
        ],
    },
    {
        "id": "chapter3",
        "title": "Chương III: Phân số",
        "lessons": [
            {"id": "c3l1", "title": "Bài 11: Mở rộng khái niệm phân số"},
            {"id": "c3l2", "title": "Bài 12: Phân số bằng nhau"},
            {"id": "c3l3", "title": "Bài 13: Rút gọn phân số"},
        ],
    },
    {
        "id": "chapter4",
        "title": "Chương IV: Số thập phân",
        "lessons": [
            {"id": "c4l1", "title": "Bài 14: Số thập phân dương"},
            {"id": "c4l2", "title": "Bài 15: So sánh các số thập phân"},
        ],
    },
]


def build_catalog(data: list[dict]) -> list[ChapterOutline]:
    """
    Build catalog chapters from plain data.

    Every lesson starts locked with zero progress; lock state and status
    are derived later from user progress.

    Raises:
        ValueError: If chapter ids or lesson ids within a chapter repeat
    """
    chapters = []
    seen_chapters: set[str] = set()

    for chapter_data in data:
        chapter_id = chapter_data["id"]
        if chapter_id in seen_chapters:
            raise ValueError(f"Duplicate chapter id in catalog: {chapter_id}")
        seen_chapters.add(chapter_id)

        lessons = []
        seen_lessons: set[str] = set()
        for lesson_data in chapter_data.get("lessons", []):
            lesson_id = lesson_data["id"]
            if lesson_id in seen_lessons:
                raise ValueError(f"Duplicate lesson id {lesson_id} in chapter {chapter_id}")
            seen_lessons.add(lesson_id)
            lessons.append(LessonOutline(id=lesson_id, title=lesson_data["title"]))

        chapters.append(ChapterOutline(
            id=chapter_id,
            title=chapter_data["title"],
            lessons=lessons,
        ))

    return chapters


def get_default_catalog() -> list[ChapterOutline]:
    """Get a fresh copy of the built-in catalog."""
    return build_catalog(DEFAULT_CATALOG_DATA)


def load_catalog(path: Optional[Path] = None) -> list[ChapterOutline]:
    """
    Load the curriculum catalog.

    Args:
        path: Optional YAML file with a top-level ``chapters`` list.
            The built-in catalog is used when omitted.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    if path is None:
        return get_default_catalog()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return build_catalog(data.get("chapters", []))
