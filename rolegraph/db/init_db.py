from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from rolegraph.db.base import Base
from rolegraph.db.session import SessionLocal, engine
from rolegraph.models.security import Permission, Role, User


def init_db() -> None:
    """
    Create tables + seed demo data.

    Small and deterministic so the guard behavior can be tried without setup.
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Role.id).limit(1)).first() is not None


def seed(db: Session) -> None:
    """
    Seed the demo hierarchy. A parent inherits the permissions of its children:

        superadmin
          admin           user.manage
            editor        report.export
              member      report.view
        guest             report.view
    """

    perms = {
        name: Permission(name=name, description=description)
        for name, description in (
            ("report.view", "Read reports"),
            ("report.export", "Export reports"),
            ("user.manage", "List and manage users"),
            ("rbac.inspect", "Inspect the resolved role graph"),
        )
    }
    db.add_all(perms.values())
    db.flush()

    superadmin = Role(name="superadmin", description="Everything")
    db.add(superadmin)
    db.flush()

    admin = Role(name="admin", description="Administrator", parent_id=superadmin.id)
    db.add(admin)
    db.flush()

    editor = Role(name="editor", description="Content editor", parent_id=admin.id)
    db.add(editor)
    db.flush()

    member = Role(name="member", description="Registered member", parent_id=editor.id)
    guest = Role(name="guest", description="Anonymous visitor")
    db.add_all([member, guest])
    db.flush()

    superadmin.permissions.append(perms["rbac.inspect"])
    admin.permissions.append(perms["user.manage"])
    editor.permissions.append(perms["report.export"])
    member.permissions.append(perms["report.view"])
    guest.permissions.append(perms["report.view"])

    u1 = User(username="root", email="root@example.com", is_active=True)
    u1.roles.append(superadmin)

    u2 = User(username="alice_admin", email="alice.admin@example.com", is_active=True)
    u2.roles.append(admin)

    u3 = User(username="ed_editor", email="ed.editor@example.com", is_active=True)
    u3.roles.append(editor)

    u4 = User(username="mo_member", email="mo.member@example.com", is_active=True)
    u4.roles.append(member)

    u5 = User(username="gone", email="gone@example.com", is_active=False)
    u5.roles.append(admin)

    db.add_all([u1, u2, u3, u4, u5])
    db.commit()
