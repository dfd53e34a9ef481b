from app.models.user import User
from app.models.clinic import Clinic
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, PatientDoctor
from app.models.address import Address
from app.models.invite import Invite
