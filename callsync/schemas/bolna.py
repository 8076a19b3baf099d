from pydantic import BaseModel


class CallDetails(BaseModel):
    status: str | None = None
    duration: float | None = None
    transcript: str | None = None
    recording_url: str | None = None


class InitiateCallResponse(BaseModel):
    call_id: str | None = None
    execution_id: str | None = None
    status: str | None = None
    message: str | None = None

    @property
    def provider_call_id(self) -> str | None:
        return self.call_id or self.execution_id


class TelephonyData(BaseModel):
    call_type: str | None = None
    from_number: str | None = None
    to_number: str | None = None
    recording_url: str | None = None


class Execution(BaseModel):
    model_config = {"extra": "allow"}

    id: str
    status: str | None = None
    user_number: str | None = None
    conversation_duration: float | str | None = None
    total_cost: float | None = None
    transcript: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    telephony_data: TelephonyData | None = None


class RecipientData(BaseModel):
    model_config = {"extra": "allow"}

    callId: str | None = None
    organizationId: str | None = None


class ContextDetails(BaseModel):
    model_config = {"extra": "allow"}

    recipient_data: RecipientData | None = None


class CallStatusWebhook(BaseModel):
    """Payload Bolna posts to the call-status webhook."""

    model_config = {"extra": "allow"}

    id: str | None = None
    status: str | None = None
    conversation_duration: float | str | None = None
    total_cost: float | None = None
    transcript: str | None = None
    recording_url: str | None = None
    context_details: ContextDetails | None = None
    telephony_data: TelephonyData | None = None
    call_details: dict | None = None
    metadata: dict | None = None
