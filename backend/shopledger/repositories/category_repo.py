from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from shopledger.models.category import Category


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: int) -> Optional[Category]:
        return (
            self.db.query(Category)
            .options(selectinload(Category.parent))
            .filter(Category.id == category_id)
            .first()
        )

    def get_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def resolve(self, ref) -> Optional[Category]:
        """Accept either a numeric id or a category name."""
        if ref is None:
            return None
        if isinstance(ref, int) or str(ref).isdigit():
            return self.get(int(ref))
        return self.get_by_name(str(ref))

    def list(self) -> List[Category]:
        return (
            self.db.query(Category)
            .options(selectinload(Category.parent))
            .order_by(Category.created_at.desc(), Category.id.desc())
            .all()
        )

    def add(self, category: Category) -> Category:
        self.db.add(category)
        self.db.flush()
        return category

    def delete(self, category: Category) -> None:
        self.db.delete(category)
        self.db.flush()
