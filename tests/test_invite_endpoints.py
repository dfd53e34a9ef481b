from app.models.doctor import Doctor
from app.models.invite import Invite, InviteRole
from app.models.links import ClinicPatient
from app.models.patient import Patient
from app.models.user import RoleEnum


# ---------- invites ----------
def test_clinic_admin_creates_patient_invite(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)

    r = client.post("/invites/", headers=auth(admin), json={"role": "patient", "clinic_id": clinic.id})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["role"] == "patient"
    assert body["clinic_id"] == clinic.id
    assert body["used_count"] == 0
    assert body["is_active"] is True
    assert len(body["code"]) >= 16


def test_global_admin_invite_is_unsupported(client, seed, auth):
    root = seed.super_admin()
    r = client.post("/invites/", headers=auth(root), json={"role": "admin"})
    assert r.status_code == 400
    assert r.json()["error"] == "unsupported_scope"


def test_create_invite_errors(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    root = seed.super_admin()

    r = client.post("/invites/", headers=auth(admin), json={"role": "admin", "clinic_id": clinic.id})
    assert r.status_code == 403
    r = client.post("/invites/", headers=auth(root), json={"role": "doctor", "clinic_id": "missing"})
    assert r.status_code == 404
    assert r.json()["error"] == "clinic_not_found"
    r = client.post("/invites/", headers=auth(root), json={"role": "owner"})
    assert r.status_code == 422
    assert seed.count(Invite) == 0


def test_resolve_is_public(client, seed):
    clinic = seed.clinic("Clínica Norte")
    seed.invite(InviteRole.patient, clinic, code="PUBLIC1")

    r = client.get("/invites/PUBLIC1")
    assert r.status_code == 200
    assert r.json()["clinic_name"] == "Clínica Norte"
    assert r.json()["is_valid"] is True

    r = client.get("/invites/UNKNOWN")
    assert r.status_code == 404
    assert r.json()["error"] == "invite_not_found"


def test_list_clinic_invites(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    outsider = seed.clinic_admin(seed.clinic("Otra"), "otra@example.com")
    seed.invite(InviteRole.patient, clinic, code="L1")
    seed.invite(InviteRole.doctor, clinic, code="L2", is_active=False)

    r = client.get(f"/invites/clinic/{clinic.id}", headers=auth(admin))
    assert r.status_code == 200
    assert {i["code"] for i in r.json()} == {"L1", "L2"}

    r = client.get(f"/invites/clinic/{clinic.id}", params={"active_only": True}, headers=auth(admin))
    assert [i["code"] for i in r.json()] == ["L1"]

    r = client.get(f"/invites/clinic/{clinic.id}", headers=auth(outsider))
    assert r.status_code == 403


def test_deactivate_endpoint_blocks_registration(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    invite = seed.invite(InviteRole.patient, clinic, code="STOP")

    r = client.post(f"/invites/{invite.id}/deactivate", headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    assert client.get("/invites/STOP").json()["is_valid"] is False
    r = client.post("/auth/register", json={
        "name": "Ana Souza", "email": "ana@example.com", "password": "secret123", "invite": "STOP",
    })
    assert r.status_code == 400

    r = client.post("/invites/missing/deactivate", headers=auth(admin))
    assert r.status_code == 404


# ---------- médicos / pacientes ----------
def test_doctor_profile(client, seed, auth):
    clinic = seed.clinic()
    user, doctor = seed.doctor(clinic)

    r = client.get("/doctors/me", headers=auth(user))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["id"] == doctor.id
    assert body["name"] == "Dra. Test"
    assert body["clinics"] == [clinic.id]

    r = client.patch("/doctors/me", headers=auth(user), json={"bio": "Cardiologista"})
    assert r.status_code == 200
    assert r.json()["bio"] == "Cardiologista"

    r = client.patch("/doctors/me", headers=auth(user), json={"license_region": "rj"})
    assert r.status_code == 200
    assert r.json()["license_region"] == "RJ"
    assert seed.one(Doctor, Doctor.id == doctor.id).license_region == "RJ"


def test_doctor_endpoints_require_doctor_role(client, seed, auth):
    user = seed.user("ana@example.com")
    assert client.get("/doctors/me", headers=auth(user)).status_code == 403


def test_doctor_qr_invite_is_stable(client, seed, auth):
    clinic = seed.clinic()
    user, doctor = seed.doctor(clinic)

    first = client.get("/doctors/me/invite", params={"clinic_id": clinic.id}, headers=auth(user))
    assert first.status_code == 200, first.text
    assert first.json()["doctor_id"] == doctor.id
    assert first.json()["role"] == "patient"

    second = client.get("/doctors/me/invite", params={"clinic_id": clinic.id}, headers=auth(user))
    assert second.json()["code"] == first.json()["code"]

    other = seed.clinic("Otra")
    r = client.get("/doctors/me/invite", params={"clinic_id": other.id}, headers=auth(user))
    assert r.status_code == 403


def test_patient_profile(client, seed, auth):
    clinic = seed.clinic()
    user = seed.user("p@example.com", RoleEnum.patient, name="Paciente")
    patient = seed.add(Patient(user_id=user.id, name="Paciente", tax_id="12345678909"))
    seed.add(ClinicPatient(clinic_id=clinic.id, patient_id=patient.id))

    r = client.get("/patients/me", headers=auth(user))
    assert r.status_code == 200, r.text
    assert r.json()["tax_id"] == "12345678909"
    assert r.json()["clinics"] == [clinic.id]


def test_patient_without_profile(client, seed, auth):
    user = seed.user("p@example.com", RoleEnum.patient)
    r = client.get("/patients/me", headers=auth(user))
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_patient_onboarding_end_to_end(client, seed, auth):
    clinic = seed.clinic("Clínica Um")
    admin = seed.clinic_admin(clinic)

    code = client.post("/invites/", headers=auth(admin), json={"role": "patient", "clinic_id": clinic.id}).json()["code"]

    resolution = client.get(f"/invites/{code}").json()
    assert resolution["role"] == "patient"
    assert resolution["clinic_name"] == "Clínica Um"

    form = {"name": "Carla Dias", "email": "carla@example.com", "password": "secret123", "invite": code}
    r = client.post("/auth/register", json=form)
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "patient"
    assert seed.count(Patient, Patient.user_id == r.json()["user_id"]) == 1
    assert seed.count(ClinicPatient, ClinicPatient.clinic_id == clinic.id) == 1
    assert seed.one(Invite, Invite.code == code).used_count == 1

    r = client.post("/auth/register", json=form)
    assert r.status_code == 409
    assert r.json()["error"] == "email_taken"
