"""
API workflow tests: auth, submissions, review, notifications, superAdmin tools
"""
from datetime import datetime, timezone

import pytest

from backend.core.roles import Role
from backend.models.audit_log import AuditLog
from backend.models.notification import Notification
from backend.models.role_permission import RolePermission
from backend.models.submission import ApprovalStatus, FundingApplication, IPRecord, Project


@pytest.fixture
def submitted_project(client, innovator, admin_user, auth_headers):
    response = client.post(
        '/api/projects',
        json={'title': 'Maize moisture sensor', 'description': 'Low-cost sensor for grain storage', 'category': 'Agritech'},
        headers=auth_headers(innovator),
    )
    assert response.status_code == 201
    return response.json()


class TestAuthFlow:
    """Registration, login and profile"""

    def test_register_then_login(self, client):
        """Self-registered accounts are innovators"""
        registered = client.post('/api/auth/register', json={
            'email': 'rehema@udsm.ac.tz', 'password': 'secret-pass', 'name': 'Rehema',
            'university': 'University of Dar es Salaam',
        })
        assert registered.status_code == 201
        assert registered.json()['role'] == 'innovator'

        login = client.post('/api/auth/login', json={'email': 'rehema@udsm.ac.tz', 'password': 'secret-pass'})
        assert login.status_code == 200
        data = login.json()
        assert data['token_type'] == 'bearer'
        assert data['user']['role'] == 'innovator'

        me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {data['access_token']}"})
        assert me.json()['email'] == 'rehema@udsm.ac.tz'

    def test_register_duplicate_email(self, client, innovator):
        response = client.post('/api/auth/register', json={
            'email': innovator.email, 'password': 'secret-pass', 'name': 'Someone',
        })

        assert response.status_code == 409
        assert response.json()['code'] == 'EMAIL_EXISTS'

    def test_soft_deleted_cannot_login(self, client, db, innovator):
        """Deleted accounts look like bad credentials"""
        innovator.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.commit()

        response = client.post('/api/auth/login', json={'email': innovator.email, 'password': 'testpassword123'})

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_CREDENTIALS'


class TestProjectLifecycle:
    """Submit, reject, resubmit, approve"""

    def test_submission_notifies_admins(self, client, submitted_project, admin_user, auth_headers):
        """Admins hear about new submissions"""
        response = client.get('/api/notifications', headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert len(response.json()) == 1
        assert 'Maize moisture sensor' in response.json()[0]['message']

    def test_reject_requires_reason(self, client, submitted_project, admin_user, seeded_permissions, auth_headers):
        response = client.put(
            f"/api/admin/projects/{submitted_project['id']}/reject", json={}, headers=auth_headers(admin_user),
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'REASON_REQUIRED'

    def test_full_cycle(self, client, db, submitted_project, innovator, admin_user, seeded_permissions, auth_headers):
        """Rejected work can be edited, resubmitted and approved; approved work is locked"""
        project_id = submitted_project['id']
        owner = auth_headers(innovator)
        admin = auth_headers(admin_user)

        rejected = client.put(f'/api/admin/projects/{project_id}/reject', json={'reason': 'Add a budget'}, headers=admin)
        assert rejected.status_code == 200
        assert rejected.json()['approval_status'] == 'rejected'

        edited = client.put(f'/api/projects/{project_id}', json={'funding_needed': '1500000'}, headers=owner)
        assert edited.status_code == 200

        resubmitted = client.put(f'/api/projects/{project_id}/resubmit', headers=owner)
        assert resubmitted.status_code == 200
        assert resubmitted.json()['approval_status'] == 'pending'
        assert resubmitted.json()['rejection_reason'] is None

        approved = client.put(f'/api/admin/projects/{project_id}/approve', json={'comments': 'Great'}, headers=admin)
        assert approved.status_code == 200
        assert approved.json()['approved_by'] == admin_user.id

        locked = client.put(f'/api/projects/{project_id}', json={'title': 'New title'}, headers=owner)
        assert locked.status_code == 403
        assert locked.json()['code'] == 'NOT_EDITABLE'

        titles = [n.title for n in db.query(Notification).filter(Notification.user_id == innovator.id)]
        assert titles == ['Project Rejected', 'Project Approved']

    def test_resubmit_pending_rejected(self, client, submitted_project, innovator, auth_headers):
        response = client.put(f"/api/projects/{submitted_project['id']}/resubmit", headers=auth_headers(innovator))

        assert response.status_code == 400
        assert response.json()['code'] == 'NOT_REJECTED'

    def test_public_listing(self, client, db, submitted_project, innovator, other_innovator, auth_headers):
        """Approved projects only, flagged for their owner"""
        db.query(Project).filter(Project.id == submitted_project['id']).update(
            {'approval_status': ApprovalStatus.approved}
        )
        db.commit()

        mine = client.get('/api/projects/public', headers=auth_headers(innovator)).json()['projects']
        theirs = client.get('/api/projects/public', headers=auth_headers(other_innovator)).json()['projects']

        assert [p['is_owner'] for p in mine] == [True]
        assert [p['is_owner'] for p in theirs] == [False]

    def test_my_projects(self, client, submitted_project, innovator, other_innovator, auth_headers):
        assert len(client.get('/api/projects/mine', headers=auth_headers(innovator)).json()) == 1
        assert client.get('/api/projects/mine', headers=auth_headers(other_innovator)).json() == []

    def test_admin_delete(self, client, db, submitted_project, admin_user, seeded_permissions, auth_headers):
        response = client.delete(f"/api/admin/projects/{submitted_project['id']}", headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert db.query(Project).count() == 0


class TestFundingReview:
    """Funding applications"""

    @pytest.fixture
    def application(self, client, innovator, auth_headers):
        response = client.post(
            '/api/funding',
            json={'title': 'Prototype grant', 'amount': '2500000.00', 'grant_type': 'seed'},
            headers=auth_headers(innovator),
        )
        assert response.status_code == 201
        return response.json()

    def test_approve_defaults_to_requested_amount(self, client, application, ip_manager, seeded_permissions, auth_headers):
        """IP managers may approve funding; amount defaults to the request"""
        response = client.put(f"/api/admin/funding/{application['id']}/approve", json={}, headers=auth_headers(ip_manager))

        assert response.status_code == 200
        assert float(response.json()['amount_approved']) == 2500000.0

    def test_approve_with_amount(self, client, application, admin_user, seeded_permissions, auth_headers):
        response = client.put(
            f"/api/admin/funding/{application['id']}/approve",
            json={'amount_approved': '1000000'},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert float(response.json()['amount_approved']) == 1000000.0

    def test_non_positive_amount_rejected(self, client, application, admin_user, seeded_permissions, auth_headers):
        response = client.put(
            f"/api/admin/funding/{application['id']}/approve",
            json={'amount_approved': '0'},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 422

    def test_innovator_cannot_approve(self, client, application, innovator, seeded_permissions, auth_headers):
        response = client.put(f"/api/admin/funding/{application['id']}/approve", json={}, headers=auth_headers(innovator))

        assert response.status_code == 403
        assert response.json()['requiredRoles'] == ['ipManager', 'admin', 'superAdmin']

    def test_revoked_permission_denies(self, client, db, application, ip_manager, seeded_permissions, auth_headers):
        """Removing the row revokes access on the next request"""
        db.query(RolePermission).filter(
            RolePermission.role == Role.IP_MANAGER,
            RolePermission.resource == 'funding',
            RolePermission.action == 'approve',
        ).delete(synchronize_session=False)
        db.commit()

        response = client.put(f"/api/admin/funding/{application['id']}/approve", json={}, headers=auth_headers(ip_manager))

        assert response.status_code == 403
        assert response.json()['code'] == 'PERMISSION_DENIED'
        assert db.query(FundingApplication).one().approval_status == ApprovalStatus.pending


class TestIPReview:
    """IP records"""

    def test_ip_manager_rejects(self, client, db, innovator, ip_manager, seeded_permissions, auth_headers):
        created = client.post(
            '/api/ip-records', json={'title': 'Drip valve', 'ip_type': 'utility_model'}, headers=auth_headers(innovator),
        )
        assert created.status_code == 201

        listed = client.get('/api/ipmanager/ip-records?status=pending', headers=auth_headers(ip_manager))
        assert listed.json()['total'] == 1

        rejected = client.put(
            f"/api/ipmanager/ip-records/{created.json()['id']}/reject",
            json={'reason': 'Prior art exists'},
            headers=auth_headers(ip_manager),
        )
        assert rejected.status_code == 200
        assert db.query(IPRecord).one().rejection_reason == 'Prior art exists'

    def test_innovator_blocked(self, client, innovator, auth_headers):
        response = client.get('/api/ipmanager/ip-records', headers=auth_headers(innovator))

        assert response.status_code == 403
        assert response.json()['code'] == 'FORBIDDEN'


class TestAdminUserManagement:
    """Single-user detail, edit and soft delete for admins"""

    def test_detail_with_stats(self, client, db, admin_user, innovator, seeded_permissions, auth_headers):
        """Profile plus submission counts"""
        db.add(Project(user_id=innovator.id, title='Cassava peeler', description='Manual peeling rig'))
        db.commit()

        response = client.get(f'/api/admin/users/{innovator.id}', headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert response.json()['email'] == innovator.email
        assert response.json()['stats'] == {'projects': 1, 'funding': 0, 'ipRecords': 0}

    def test_detail_missing(self, client, admin_user, seeded_permissions, auth_headers):
        response = client.get('/api/admin/users/999', headers=auth_headers(admin_user))

        assert response.status_code == 404
        assert response.json()['code'] == 'USER_NOT_FOUND'

    def test_ip_manager_blocked(self, client, ip_manager, innovator, seeded_permissions, auth_headers):
        response = client.get(f'/api/admin/users/{innovator.id}', headers=auth_headers(ip_manager))

        assert response.status_code == 403
        assert response.json()['code'] == 'FORBIDDEN'

    def test_update_is_audited(self, client, db, admin_user, innovator, seeded_permissions, auth_headers):
        """Edits apply and leave one users entry"""
        response = client.put(
            f'/api/admin/users/{innovator.id}',
            json={'name': 'Baraka Mwita', 'phone': '+255712345678'},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json()['name'] == 'Baraka Mwita'
        assert response.json()['phone'] == '+255712345678'
        entry = db.query(AuditLog).one()
        assert (entry.resource, entry.resource_id, entry.user_id) == ('users', innovator.id, admin_user.id)

    def test_update_needs_permission_row(self, client, db, admin_user, innovator, seeded_permissions, auth_headers):
        """Without users:update the admin is refused"""
        db.query(RolePermission).filter(
            RolePermission.role == Role.ADMIN,
            RolePermission.resource == 'users',
            RolePermission.action == 'update',
        ).delete(synchronize_session=False)
        db.commit()

        response = client.put(f'/api/admin/users/{innovator.id}', json={'name': 'X'}, headers=auth_headers(admin_user))

        assert response.status_code == 403
        assert response.json()['code'] == 'PERMISSION_DENIED'
        assert response.json()['required'] == {'resource': 'users', 'action': 'update'}

    def test_soft_delete(self, client, db, admin_user, innovator, seeded_permissions, auth_headers):
        response = client.delete(f'/api/admin/users/{innovator.id}', headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert response.json()['deletedUser']['email'] == innovator.email
        db.refresh(innovator)
        assert innovator.deleted_at is not None
        assert innovator.deleted_by == admin_user.id

    def test_admin_cannot_delete_super_admin(self, client, db, admin_user, super_admin, seeded_permissions, auth_headers):
        """superAdmins are out of an admin's reach"""
        response = client.delete(f'/api/admin/users/{super_admin.id}', headers=auth_headers(admin_user))

        assert response.status_code == 403
        assert response.json()['error'] == 'Admins cannot delete superAdmins'
        db.refresh(super_admin)
        assert super_admin.deleted_at is None

    def test_admin_cannot_delete_self(self, client, admin_user, seeded_permissions, auth_headers):
        response = client.delete(f'/api/admin/users/{admin_user.id}', headers=auth_headers(admin_user))

        assert response.status_code == 400
        assert response.json()['error'] == 'You cannot delete your own account'

    def test_already_deleted(self, client, db, admin_user, innovator, seeded_permissions, auth_headers):
        innovator.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.commit()

        response = client.delete(f'/api/admin/users/{innovator.id}', headers=auth_headers(admin_user))

        assert response.status_code == 404


class TestIPRecordManagement:
    """Reviewer detail, correction and removal of IP records"""

    @pytest.fixture
    def ip_record(self, db, innovator):
        record = IPRecord(
            user_id=innovator.id, title='Drip valve', ip_type='patent', approval_status=ApprovalStatus.approved,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    def test_detail(self, client, ip_record, ip_manager, seeded_permissions, auth_headers):
        response = client.get(f'/api/ipmanager/ip-records/{ip_record.id}', headers=auth_headers(ip_manager))

        assert response.status_code == 200
        assert response.json()['title'] == 'Drip valve'

    def test_detail_missing(self, client, ip_manager, seeded_permissions, auth_headers):
        assert client.get('/api/ipmanager/ip-records/999', headers=auth_headers(ip_manager)).status_code == 404

    def test_update_in_any_status(self, client, db, ip_record, ip_manager, seeded_permissions, auth_headers):
        """Reviewers may correct approved records; the decision is untouched"""
        response = client.put(
            f'/api/ipmanager/ip-records/{ip_record.id}',
            json={'title': 'Pressure-compensating drip valve', 'ip_type': 'utility_model'},
            headers=auth_headers(ip_manager),
        )

        assert response.status_code == 200
        assert response.json()['title'] == 'Pressure-compensating drip valve'
        assert response.json()['approval_status'] == 'approved'
        assert db.query(AuditLog).one().resource == 'ip_management'

    def test_admin_lacks_update_row(self, client, ip_record, admin_user, seeded_permissions, auth_headers):
        """The role gate passes admins but the store has no ip_management:update for them"""
        response = client.put(
            f'/api/ipmanager/ip-records/{ip_record.id}', json={'title': 'X'}, headers=auth_headers(admin_user),
        )

        assert response.status_code == 403
        assert response.json()['code'] == 'PERMISSION_DENIED'

    def test_delete(self, client, db, ip_record, ip_manager, seeded_permissions, auth_headers):
        response = client.delete(f'/api/ipmanager/ip-records/{ip_record.id}', headers=auth_headers(ip_manager))

        assert response.status_code == 200
        assert response.json()['detail']['title'] == 'Drip valve'
        assert db.query(IPRecord).count() == 0

    def test_innovator_cannot_delete(self, client, db, ip_record, innovator, seeded_permissions, auth_headers):
        """Owners do not pass the reviewer gate"""
        response = client.delete(f'/api/ipmanager/ip-records/{ip_record.id}', headers=auth_headers(innovator))

        assert response.status_code == 403
        assert db.query(IPRecord).count() == 1


class TestNotifications:
    """Reading notifications"""

    def test_mark_read(self, client, db, innovator, other_innovator, auth_headers):
        note = Notification(user_id=innovator.id, title='Hello', message='Welcome to CITT')
        db.add(note)
        db.commit()

        assert client.put(f'/api/notifications/{note.id}/read', headers=auth_headers(other_innovator)).status_code == 404

        response = client.put(f'/api/notifications/{note.id}/read', headers=auth_headers(innovator))
        assert response.status_code == 200
        assert response.json()['is_read'] is True
        assert client.get('/api/notifications?unread_only=true', headers=auth_headers(innovator)).json() == []


class TestSuperAdminTools:
    """Registry, permissions and statistics"""

    def test_roles(self, client, super_admin, auth_headers):
        roles = client.get('/api/superadmin/roles', headers=auth_headers(super_admin)).json()['roles']

        assert [r['value'] for r in roles] == ['superAdmin', 'admin', 'ipManager', 'innovator']
        assert roles[-1]['manages'] == []

    def test_permission_management(self, client, super_admin, seeded_permissions, auth_headers):
        headers = auth_headers(super_admin)
        payload = {'role': 'innovator', 'resource': 'analytics', 'action': 'view', 'description': 'Dashboards'}

        created = client.post('/api/superadmin/permissions', json=payload, headers=headers)
        assert created.status_code == 201
        assert created.json()['role'] == 'innovator'

        duplicate = client.post('/api/superadmin/permissions', json=payload, headers=headers)
        assert duplicate.status_code == 409
        assert duplicate.json()['code'] == 'DUPLICATE_PERMISSION'

        grouped = client.get('/api/superadmin/permissions', headers=headers).json()['permissions']
        assert any(p['resource'] == 'analytics' for p in grouped['innovator'])

        removed = client.delete(f"/api/superadmin/permissions/{created.json()['id']}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()['permission']['action'] == 'view'

    def test_invalid_permission_role(self, client, super_admin, auth_headers):
        response = client.post(
            '/api/superadmin/permissions',
            json={'role': 'guest', 'resource': 'events', 'action': 'read'},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_ROLE'

    def test_system_stats(self, client, super_admin, innovator, admin_user, seeded_permissions, auth_headers):
        stats = client.get('/api/superadmin/system/stats', headers=auth_headers(super_admin)).json()

        assert stats['totalUsers'] == 3
        assert stats['totalPermissions'] == seeded_permissions
        assert stats['usersByRole'] == {'superAdmin': 1, 'admin': 1, 'innovator': 1}

    def test_admin_locked_out(self, client, admin_user, auth_headers):
        response = client.get('/api/superadmin/system/stats', headers=auth_headers(admin_user))

        assert response.status_code == 403
        assert response.json()['requiredRoles'] == ['superAdmin']


class TestHealth:
    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'ok', 'database': 'ok'}

    def test_request_id_header(self, client):
        response = client.get('/api/health', headers={'X-Request-Id': 'trace-123'})

        assert response.headers['X-Request-Id'] == 'trace-123'
