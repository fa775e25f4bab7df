# File: /tests/sample_app.py | Version: 1.1 | Title: Host models and tables exercised by the test-suite
"""
A tiny host application: users with a company, tags and posts, plus a
department, skills and badges that live on a second ("archive") connection.
"""
from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table as SATable
from sqlalchemy.orm import declarative_base, relationship

from tablekit.models import SoftDeletable
from tablekit.tables import (
    Action,
    ActionColumn,
    BadgeColumn,
    BooleanColumn,
    BooleanFilter,
    Clause,
    DateColumn,
    DateFilter,
    EmptyState,
    Export,
    ExportType,
    ImageColumn,
    NumericColumn,
    NumericFilter,
    SetFilter,
    Table,
    TableConfig,
    TextColumn,
    TextFilter,
    TrashedFilter,
    Variant,
)

SampleBase = declarative_base()

user_tags = SATable(
    "user_tags",
    SampleBase.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)

# lives on the archive connection, next to skills
user_skills = SATable(
    "user_skills",
    SampleBase.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("skill_id", ForeignKey("skills.id"), primary_key=True),
)


class Company(SampleBase):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)


class Department(SampleBase):
    __tablename__ = "departments"
    __connection__ = "archive"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)


class Skill(SampleBase):
    __tablename__ = "skills"
    __connection__ = "archive"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)


class Badge(SampleBase):
    __tablename__ = "badges"
    __connection__ = "archive"

    id = Column(Integer, primary_key=True)
    label = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    user = relationship("User", back_populates="badges")


class Tag(SampleBase):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)


class User(SoftDeletable, SampleBase):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    status = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC).replace(tzinfo=None))
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)

    company = relationship("Company")
    department = relationship("Department")
    tags = relationship("Tag", secondary=user_tags)
    posts = relationship("Post", back_populates="user")
    badges = relationship("Badge", back_populates="user")
    skills = relationship("Skill", secondary=user_skills)


class Post(SampleBase):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    user = relationship("User", back_populates="posts")


# ----------------------------
# Action handlers
# ----------------------------
def activate(user: User) -> None:
    user.is_active = True


def ban(user: User) -> None:
    user.status = "banned"


def delete(user: User) -> None:
    user.soft_delete()


# ----------------------------
# Tables
# ----------------------------
class UsersTable(Table):
    resource = User

    def columns(self):
        return [
            TextColumn("name", sortable=True, searchable=True),
            TextColumn("email", searchable=True, toggleable=False),
            NumericColumn("age", sortable=True),
            BooleanColumn("is_active", header="Active"),
            BadgeColumn("status", variant={"active": Variant.success, "banned": Variant.destructive}),
            TextColumn("company.name", header="Company", sortable=True),
            TextColumn("tags.name", header="Tags"),
            DateColumn("created_at", visible=False),
            ActionColumn(),
        ]

    def filters(self):
        return [
            TextFilter("name", clauses=[Clause.contains, Clause.equals]),
            NumericFilter("age"),
            BooleanFilter("is_active"),
            SetFilter("status", options=["active", "banned"]),
            SetFilter("tags.name", label="Tags", options=["x", "y", "z"], multiple=True),
            SetFilter("department.id", label="Department", options={1: "Sales", 2: "Ops", 3: "HR"}),
            DateFilter("created_at"),
            TrashedFilter(),
        ]

    def actions(self):
        return [
            Action("Activate", handle=activate, as_bulk_action=True),
            Action("Ban", handle=ban),
            Action("Edit", url=lambda user, url: url.to(f"/users/{user.id}/edit")),
            Action("Delete", handle=delete, authorize=False),
        ]

    def exports(self):
        return [
            Export("Excel Export", filename="users.xlsx"),
            Export("CSV Export", filename="users.csv", type=ExportType.csv, limit_to_filtered_rows=True),
            Export("Queued Export", filename="users-queued.xlsx", queue=True),
        ]


class ViewsUsersTable(UsersTable):
    config = TableConfig(views_enabled=True)


class CompanyUsersTable(Table):
    """Users of one company; the company travels inside every signed URL."""

    resource = User
    remember = ("company",)

    def __init__(self, company: Company, session=None) -> None:
        super().__init__(session)
        self.company = company

    def resource_query(self):
        return super().resource_query().where(User.company_id == self.company.id)

    def columns(self):
        return [TextColumn("name", sortable=True), ActionColumn()]

    def actions(self):
        return [Action("Activate", handle=activate, as_bulk_action=True)]


class PostsTable(Table):
    resource = Post
    per_page_options = [10, 25]

    def columns(self):
        return [NumericColumn("id", sortable=True), TextColumn("title", sortable=True, searchable=True)]

    def filters(self):
        return [TrashedFilter()]

    def empty_state(self):
        return EmptyState("No posts yet", message="Write the first one.").action("Create post", "/posts/create")


class SortedTagsTable(UsersTable):
    """Tags sortable without touching SQL; cell values are ordered in Python."""

    def columns(self):
        return [TextColumn("name"), TextColumn("tags.name", sortable=True, sort_using=lambda query, direction: None)]


class FlaggedTable(UsersTable):
    def actions(self):
        return [
            Action("Edit", url=lambda user, url: url.to("/edit"), disabled=True),
            Action("Gone", handle=lambda user: None, hidden=lambda user: True),
        ]


class GalleryTable(Table):
    resource = User

    def columns(self):
        return [
            TextColumn(
                "name",
                url=lambda user, url: url.to(f"/users/{user.id}"),
                image=lambda user, image: image.to(f"/avatars/{user.name.lower()}.png").set_rounded(),
            ),
            ImageColumn("email", header="Avatar", image=lambda user, image: image.set_alt(user.name).small()),
            DateColumn("created_at", format="%d %b %Y"),
            BooleanColumn("is_active", true_icon="check"),
            TextColumn("status", sortable=True, map_as={"active": "Active", "banned": "Banned"}).sort_using_map(),
            ActionColumn(),
        ]

    def filters(self):
        return [SetFilter("company", label="Company").pluck_options_from_relation()]

    def row_url(self, model, url):
        return url.to(f"/users/{model.id}")

    def data_attributes_for_model(self, model, data):
        return {"userId": model.id, 0: "highlight"}


class DepartmentUsersTable(Table):
    """Searches a relation that lives on the archive connection."""

    resource = User

    def columns(self):
        return [TextColumn("name", searchable=True), TextColumn("department.name", header="Department", searchable=True)]


# ----------------------------
# Factories
# ----------------------------
def make_user(db, name: str, **fields) -> User:
    fields.setdefault("email", f"{name.lower()}@example.com")
    user = User(name=name, **fields)
    db.add(user)
    db.flush()
    return user


def make_posts(db, count: int) -> list:
    posts = [Post(title=f"Post {i:03d}") for i in range(count)]
    db.add_all(posts)
    db.flush()
    return posts
