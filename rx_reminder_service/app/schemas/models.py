from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

EntityType = Literal["medication", "dosageUnit", "timeOfDay", "mealTime", "frequencyTerm", "instructionTerm"]
ValidationStatus = Literal["FOUND", "NOT_FOUND", "INDETERMINATE"]
PrescriptionSource = Literal["ocr", "voice", "manual", "test"]
PrescriptionStatus = Literal["processing", "scheduled", "no_meds_found"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RawEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    canonical_value: str
    source_text: str  # surface form as it appears in the text
    start: int
    end: int


class DrugValidation(BaseModel):
    """
    Outcome of a drug vocabulary lookup.
    INDETERMINATE means the lookup itself failed, not that the drug is unknown.
    """
    status: ValidationStatus
    name_used: Optional[str] = None
    brand_names: List[str] = Field(default_factory=list)
    generic_names: List[str] = Field(default_factory=list)
    manufacturer_names: List[str] = Field(default_factory=list)
    ndc: List[str] = Field(default_factory=list)
    spl_id: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == "FOUND"


class StructuredMedication(BaseModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    instructions: Optional[str] = None
    reminder_times: List[str] = Field(default_factory=list)  # "8:00 AM" style, string-sorted
    time_context: str = ""
    validation: Optional[DrugValidation] = None
    package_image_url: Optional[str] = None
    medication_image_url: Optional[str] = None


class ParseResult(BaseModel):
    raw_entities: List[RawEntity] = Field(default_factory=list)
    structured_medications: List[StructuredMedication] = Field(default_factory=list)


class MedicationSchedule(BaseModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    instructions: Optional[str] = None
    reminder_times: List[str] = Field(default_factory=list)  # "HH:MM", 24h
    active: bool = True
    package_image_url: Optional[str] = None
    medication_image_url: Optional[str] = None
    next_reminder_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Prescription(BaseModel):
    id: Optional[str] = None
    user_id: str
    source: PrescriptionSource
    ocr_text: Optional[str] = None
    input_text: Optional[str] = None
    original_filename: Optional[str] = None
    prescription_image_url: Optional[str] = None
    package_image_url: Optional[str] = None
    medication_image_url: Optional[str] = None
    nlp_result: ParseResult = Field(default_factory=ParseResult)
    medication_schedules: List[MedicationSchedule] = Field(default_factory=list)
    status: PrescriptionStatus = "processing"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id"})


class DueReminder(BaseModel):
    prescription_id: str
    user_id: str
    medication_name: str
    time: str  # "HH:MM"


# ---- API payloads ----

class ParseTextRequest(BaseModel):
    text: str


class VoiceReminderRequest(BaseModel):
    text: str


class ManualReminderRequest(BaseModel):
    medication_name: str
    frequency: str
    dosage: Optional[str] = None
    instructions: Optional[str] = None
    package_image_url: Optional[str] = None
    medication_image_url: Optional[str] = None


class ReminderUpdateRequest(BaseModel):
    medication_schedules: Optional[List[MedicationSchedule]] = None
    status: Optional[PrescriptionStatus] = None


class FormattedMedication(BaseModel):
    medicine: str
    dose: str
    times: List[str]
    time_context: str
    instructions: str
    frequency: str
    confirmation_text: Optional[str] = None


class UploadResponse(BaseModel):
    ocr_text: str
    nlp_data: Optional[ParseResult] = None
    prescription_id: Optional[str] = None
    image_urls: Dict[str, Optional[str]] = Field(default_factory=dict)


class VoiceReminderResponse(BaseModel):
    message: str
    prescription_id: str
    reminder: FormattedMedication


class ManualReminderResponse(BaseModel):
    message: str
    prescription_id: str
    structured_medication: StructuredMedication


class DueRemindersResponse(BaseModel):
    time: str
    due: List[DueReminder]
