from app.models.address import Address, EntityType
from app.models.doctor import Doctor
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, StaffRole
from app.models.patient import Patient
from app.models.user import User, RoleEnum

PASSWORD = "secret123"


def _receptionist(seed, clinic, email="recepcion@example.com"):
    u = seed.user(email, RoleEnum.user, name="Recepción")
    seed.add(ClinicUser(user_id=u.id, clinic_id=clinic.id, role=StaffRole.receptionist, is_active=True))
    return u


def _doctor_form(**extra) -> dict:
    data = {
        "name": "Dr. Paulo Lima", "email": "Paulo@Example.com", "password": PASSWORD,
        "license": "54321", "license_region": "rj",
    }
    data.update(extra)
    return data


def _patient_form(**extra) -> dict:
    data = {"name": "Marta Rocha", "tax_id": "123.456.789-09", "phone": "(11) 98888-7777"}
    data.update(extra)
    return data


# ---------- médicos ----------
def test_admin_creates_doctor_with_account(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)

    r = client.post(f"/doctors/clinic/{clinic.id}", headers=auth(admin), json=_doctor_form())
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["name"] == "Dr. Paulo Lima"
    assert body["email"] == "paulo@example.com"
    assert body["license_region"] == "RJ"
    assert body["clinics"] == [clinic.id]

    user = seed.one(User, User.email == "paulo@example.com")
    assert user.role == RoleEnum.doctor
    assert seed.count(ClinicUser, ClinicUser.user_id == user.id, ClinicUser.role == StaffRole.doctor) == 1
    assert seed.count(ClinicDoctor, ClinicDoctor.doctor_id == body["id"]) == 1

    r = client.post("/auth/login", json={"email": "paulo@example.com", "password": PASSWORD})
    assert r.status_code == 200, r.text
    assert r.json()["claims"]["clinic_id"] == clinic.id


def test_create_doctor_requires_clinic_admin(client, seed, auth):
    clinic = seed.clinic()
    staff = _receptionist(seed, clinic)
    outsider = seed.clinic_admin(seed.clinic("Otra"), "otra@example.com")

    assert client.post(f"/doctors/clinic/{clinic.id}", headers=auth(staff), json=_doctor_form()).status_code == 403
    assert client.post(f"/doctors/clinic/{clinic.id}", headers=auth(outsider), json=_doctor_form()).status_code == 403
    r = client.post("/doctors/clinic/missing", headers=auth(outsider), json=_doctor_form())
    assert r.status_code == 404
    assert r.json()["error"] == "clinic_not_found"
    assert seed.count(Doctor) == 0


def test_create_doctor_with_taken_email(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    seed.user("paulo@example.com")

    r = client.post(f"/doctors/clinic/{clinic.id}", headers=auth(admin), json=_doctor_form())
    assert r.status_code == 409
    assert r.json()["error"] == "email_taken"
    assert seed.count(Doctor) == 0


def test_list_doctors_for_staff(client, seed, auth):
    clinic = seed.clinic()
    staff = _receptionist(seed, clinic)
    _, active = seed.doctor(clinic)
    _, gone = seed.doctor(clinic, "gone@example.com")
    seed.doctor(seed.clinic("Otra"), "otro@example.com")
    r = client.post(f"/doctors/clinic/{clinic.id}/{gone.id}/deactivate", headers=auth(seed.super_admin()))
    assert r.status_code == 204

    r = client.get(f"/doctors/clinic/{clinic.id}", headers=auth(staff))
    assert r.status_code == 200, r.text
    assert [d["id"] for d in r.json()] == [active.id]

    r = client.get(f"/doctors/clinic/{clinic.id}", params={"active_only": False}, headers=auth(staff))
    assert {d["id"] for d in r.json()} == {active.id, gone.id}

    patient = seed.user("p@example.com", RoleEnum.patient)
    assert client.get(f"/doctors/clinic/{clinic.id}", headers=auth(patient)).status_code == 403


def test_admin_updates_doctor(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    _, doctor = seed.doctor(clinic)

    r = client.patch(
        f"/doctors/clinic/{clinic.id}/{doctor.id}",
        headers=auth(admin),
        json={"name": "Dra. Renomeada", "email": "nova@example.com", "license_region": "mg"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Dra. Renomeada"
    assert body["email"] == "nova@example.com"
    assert body["license_region"] == "MG"
    assert body["license"] == "12345"

    r = client.patch(f"/doctors/clinic/{clinic.id}/{doctor.id}", headers=auth(admin), json={"name": None})
    assert r.status_code == 422


def test_update_doctor_email_collision_and_scope(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    _, doctor = seed.doctor(clinic)
    _, elsewhere = seed.doctor(seed.clinic("Otra"), "otro@example.com")

    r = client.patch(f"/doctors/clinic/{clinic.id}/{doctor.id}", headers=auth(admin), json={"email": "admin@example.com"})
    assert r.status_code == 409
    assert r.json()["error"] == "email_taken"

    r = client.patch(f"/doctors/clinic/{clinic.id}/{elsewhere.id}", headers=auth(admin), json={"phone": "1"})
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_deactivate_doctor_drops_clinic_scope(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    user, doctor = seed.doctor(clinic)

    r = client.post(f"/doctors/clinic/{clinic.id}/{doctor.id}/deactivate", headers=auth(admin))
    assert r.status_code == 204

    assert seed.one(ClinicDoctor, ClinicDoctor.doctor_id == doctor.id).is_active is False
    assert seed.one(ClinicUser, ClinicUser.user_id == user.id).is_active is False
    assert seed.count(Doctor, Doctor.id == doctor.id) == 1

    r = client.post("/auth/login", json={"email": "doc@example.com", "password": PASSWORD})
    assert r.json()["claims"]["clinic_id"] is None

    r = client.post(f"/doctors/clinic/{clinic.id}/{doctor.id}/deactivate", headers=auth(admin))
    assert r.status_code == 404


# ---------- pacientes ----------
def test_receptionist_creates_patient_without_account(client, seed, auth):
    clinic = seed.clinic()
    staff = _receptionist(seed, clinic)

    form = _patient_form(email="", zip_code="01310-100", street="Av. Paulista", city="São Paulo", state="sp")
    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(staff), json=form)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["user_id"] is None
    assert body["email"] is None
    assert body["tax_id"] == "12345678909"
    assert body["phone"] == "11988887777"
    assert body["clinics"] == [clinic.id]

    address = seed.one(Address, Address.entity_type == EntityType.patient, Address.entity_id == body["id"])
    assert address.zip_code == "01310100"
    assert address.state == "SP"
    assert address.is_primary is True


def test_patient_without_address_fields_gets_no_address(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)

    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(admin), json=_patient_form(number="12"))
    assert r.status_code == 201, r.text
    assert seed.count(Address) == 0


def test_duplicate_tax_id_is_unique_violation(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    seed.add(Patient(name="Otro Paciente", tax_id="12345678909"))

    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(admin), json=_patient_form())
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "unique_violation"
    assert "tax_id" in body["fields"]
    assert seed.count(Patient) == 1
    assert seed.count(ClinicPatient) == 0


def test_patient_form_validation(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)

    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(admin), json=_patient_form(name="  A  "))
    assert r.status_code == 422
    assert "name" in r.json()["fields"]

    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(admin), json=_patient_form(tax_id="123"))
    assert r.status_code == 422
    assert "tax_id" in r.json()["fields"]
    assert seed.count(Patient) == 0


def test_create_patient_requires_staff(client, seed, auth):
    clinic = seed.clinic()
    doctor_elsewhere, _ = seed.doctor(seed.clinic("Otra"))
    r = client.post(f"/patients/clinic/{clinic.id}", headers=auth(doctor_elsewhere), json=_patient_form())
    assert r.status_code == 403
    assert seed.count(Patient) == 0


def test_list_and_deactivate_patients(client, seed, auth):
    clinic = seed.clinic()
    admin = seed.clinic_admin(clinic)
    staff = _receptionist(seed, clinic)
    ana = seed.add(Patient(name="Ana"))
    bruno = seed.add(Patient(name="Bruno"))
    outsider = seed.add(Patient(name="Carlos"))
    seed.add(
        ClinicPatient(clinic_id=clinic.id, patient_id=ana.id),
        ClinicPatient(clinic_id=clinic.id, patient_id=bruno.id),
        ClinicPatient(clinic_id=seed.clinic("Otra").id, patient_id=outsider.id),
    )

    r = client.get(f"/patients/clinic/{clinic.id}", headers=auth(staff))
    assert r.status_code == 200, r.text
    assert [p["name"] for p in r.json()] == ["Ana", "Bruno"]

    # recepción lista y carga, pero la baja es del admin
    r = client.post(f"/patients/clinic/{clinic.id}/{bruno.id}/deactivate", headers=auth(staff))
    assert r.status_code == 403

    r = client.post(f"/patients/clinic/{clinic.id}/{bruno.id}/deactivate", headers=auth(admin))
    assert r.status_code == 204
    assert seed.count(Patient, Patient.id == bruno.id) == 1

    r = client.get(f"/patients/clinic/{clinic.id}", headers=auth(staff))
    assert [p["name"] for p in r.json()] == ["Ana"]
    r = client.get(f"/patients/clinic/{clinic.id}", params={"active_only": False}, headers=auth(staff))
    assert [p["name"] for p in r.json()] == ["Ana", "Bruno"]

    r = client.post(f"/patients/clinic/{clinic.id}/{outsider.id}/deactivate", headers=auth(admin))
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
