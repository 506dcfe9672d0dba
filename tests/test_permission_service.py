"""
Permission store tests
"""
import pytest

from backend.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from backend.core.permissions import DEFAULT_PERMISSIONS, Action, Resource
from backend.core.roles import Role
from backend.models.role_permission import RolePermission
from backend.services.permission_service import permission_service


class TestSeeding:
    """Default allow-list"""

    def test_seed_inserts_defaults(self, db):
        """Every default triple is inserted once"""
        added = permission_service.seed_defaults(db)

        assert added == len(DEFAULT_PERMISSIONS)
        assert db.query(RolePermission).count() == len(DEFAULT_PERMISSIONS)

    def test_seed_is_idempotent(self, db, seeded_permissions):
        """A second run adds nothing"""
        assert permission_service.seed_defaults(db) == 0
        assert db.query(RolePermission).count() == seeded_permissions

    def test_super_admin_has_no_rows(self, db, seeded_permissions):
        """superAdmin is authorized implicitly"""
        assert permission_service.get_role_permissions(db, Role.SUPER_ADMIN) == []


class TestHasPermission:
    """Exact-match whitelist lookups"""

    def test_seeded_triple_allowed(self, db, seeded_permissions):
        """A seeded row grants access"""
        assert permission_service.has_permission(db, Role.ADMIN, Resource.PROJECTS, Action.APPROVE)
        assert permission_service.has_permission(db, Role.IP_MANAGER, 'ip_management', 'approve')

    def test_missing_triple_denied(self, db, seeded_permissions):
        """Absent rows deny, including the innovator funding approval"""
        assert not permission_service.has_permission(db, Role.INNOVATOR, Resource.FUNDING, Action.APPROVE)
        assert not permission_service.has_permission(db, Role.IP_MANAGER, Resource.USERS, Action.DELETE)

    def test_no_hierarchical_matching(self, db, seeded_permissions):
        """read_own does not imply read"""
        assert permission_service.has_permission(db, Role.INNOVATOR, Resource.PROJECTS, Action.READ_OWN)
        assert not permission_service.has_permission(db, Role.INNOVATOR, Resource.PROJECTS, Action.READ)

    def test_super_admin_bypasses_store(self, db):
        """superAdmin is allowed even against an empty store"""
        assert db.query(RolePermission).count() == 0
        assert permission_service.has_permission(db, Role.SUPER_ADMIN, Resource.SYSTEM, Action.SETTINGS)

    def test_empty_store_denies(self, db):
        """Nothing is allowed before seeding"""
        assert not permission_service.has_permission(db, Role.ADMIN, Resource.PROJECTS, Action.READ)

    def test_edits_take_effect_immediately(self, db, seeded_permissions):
        """No caching between calls"""
        assert not permission_service.has_permission(db, Role.INNOVATOR, Resource.ANALYTICS, Action.VIEW)

        perm = permission_service.add_permission(db, 'innovator', Resource.ANALYTICS, Action.VIEW)
        assert permission_service.has_permission(db, Role.INNOVATOR, Resource.ANALYTICS, Action.VIEW)

        permission_service.delete_permission(db, perm.id)
        assert not permission_service.has_permission(db, Role.INNOVATOR, Resource.ANALYTICS, Action.VIEW)


class TestQueries:
    """Derived permission views"""

    def test_by_resource(self, db, seeded_permissions):
        """Innovator permissions grouped by resource"""
        grouped = permission_service.get_role_permissions_by_resource(db, Role.INNOVATOR)

        assert {p['action'] for p in grouped['projects']} == {'create', 'read_own', 'update_own', 'delete_own'}
        assert 'users' not in grouped

    def test_can_perform_action(self, db, seeded_permissions):
        """Action on any resource"""
        assert permission_service.can_perform_action(db, Role.IP_MANAGER, Action.APPROVE)
        assert not permission_service.can_perform_action(db, Role.INNOVATOR, Action.APPROVE)
        assert permission_service.can_perform_action(db, Role.SUPER_ADMIN, Action.DEMOTE)

    def test_accessible_resources(self, db, seeded_permissions):
        """Distinct resources for a role"""
        resources = permission_service.get_accessible_resources(db, Role.IP_MANAGER)
        assert resources == sorted(['funding', 'ip_management', 'projects'])

    def test_grouped_by_role(self, db, seeded_permissions):
        """Roles ordered by authority, superAdmin absent"""
        grouped = permission_service.list_grouped_by_role(db)

        assert list(grouped) == ['admin', 'ipManager', 'innovator']
        assert all({'id', 'resource', 'action', 'description'} <= set(p) for p in grouped['admin'])


class TestMutations:
    """Adding and removing rows"""

    def test_add_duplicate_conflicts(self, db, seeded_permissions):
        """The unique triple is enforced"""
        with pytest.raises(ResourceConflictError) as exc_info:
            permission_service.add_permission(db, Role.ADMIN, Resource.PROJECTS, Action.APPROVE)
        assert exc_info.value.code == 'DUPLICATE_PERMISSION'
        assert exc_info.value.status_code == 409

    def test_add_unknown_role(self, db):
        """Roles outside the registry are rejected"""
        with pytest.raises(ValidationError):
            permission_service.add_permission(db, 'guest', Resource.EVENTS, Action.READ)

    def test_add_unknown_action(self, db):
        """Actions outside the vocabulary are rejected"""
        with pytest.raises(ValueError):
            permission_service.add_permission(db, Role.ADMIN, Resource.EVENTS, 'publish')

    def test_delete_returns_removed_row(self, db, seeded_permissions):
        """The deleted triple is echoed back"""
        perm = db.query(RolePermission).filter(RolePermission.role == Role.IP_MANAGER).first()
        expected = (perm.id, perm.resource, perm.action)

        removed = permission_service.delete_permission(db, perm.id)

        assert removed['role'] == 'ipManager'
        assert (removed['id'], removed['resource'], removed['action']) == expected
        assert db.query(RolePermission).filter(RolePermission.id == removed['id']).first() is None

    def test_delete_missing(self, db):
        """Unknown ids are 404"""
        with pytest.raises(ResourceNotFoundError):
            permission_service.delete_permission(db, 999)
