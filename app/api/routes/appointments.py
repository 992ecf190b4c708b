# app/api/routes/appointments.py

from __future__ import annotations
from fastapi import APIRouter, Depends, status

from app.api.deps import get_booking_service
from app.schemas.appointment import AppointmentCreate, AppointmentOut
from app.services.booking import BookingService

router = APIRouter(prefix="/appointments", tags=["appointments"])

@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def book_appointment(payload: AppointmentCreate, service: BookingService = Depends(get_booking_service)):
    # Domain errors are mapped to status codes by the handlers in app.main
    return await service.create_appointment(
        organizer_id=payload.organizer_id,
        participant_id=payload.participant_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        description=payload.description,
    )

@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(appointment_id: int, service: BookingService = Depends(get_booking_service)):
    return await service.get_appointment(appointment_id)
