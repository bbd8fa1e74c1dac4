"""
API v1 routes.

Defines REST endpoints that drive registration wizard sessions. Every
mutating endpoint returns the full session view so a client can render
the wizard from a single response.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import get_orchestrator, get_session_registry
from src.api.models import (
    CityView,
    CountryView,
    CredentialsView,
    ErrorResponse,
    FieldUpdate,
    LocationUpdate,
    PasswordFeedback,
    RegistrationView,
    SelectionView,
    SportUpdate,
    SportView,
)
from src.api.sessions import SessionRegistry
from src.domain.models import RegistrationStep, Sport
from src.domain.orchestrator import RegistrationOrchestrator
from src.domain.password_policy import password_requirements

router = APIRouter(tags=["v1"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Registration session not found"}}


def build_view(session_id: str, orchestrator: RegistrationOrchestrator) -> RegistrationView:
    """Render the orchestrator's session; passwords are reduced to feedback."""
    session = orchestrator.session
    form = session.form
    password, confirmation = orchestrator.password_feedback()
    credentials = session.credentials

    return RegistrationView(
        id=session_id,
        step=orchestrator.current_step,
        progress=orchestrator.current_step.progress,
        can_proceed=orchestrator.can_proceed,
        is_final_step=orchestrator.steps.is_final_step,
        username=form.username,
        email=form.email,
        first_name=form.first_name,
        last_name=form.last_name,
        phone_number=form.phone_number,
        date_of_birth=form.date_of_birth,
        gender=form.gender,
        country_id=form.country.id if form.country else None,
        city_id=form.city.id if form.city else None,
        district=form.district,
        overall_experience_level=form.overall_experience_level,
        bio=form.bio,
        about_me=form.about_me,
        username_availability=form.username_availability,
        email_availability=form.email_availability,
        password=PasswordFeedback(
            valid=password.valid,
            reason=password.message_key,
            confirmation_valid=confirmation.valid,
            confirmation_reason=confirmation.message_key,
            requirements=password_requirements(form.password),
        ),
        errors=session.errors.as_dict(),
        error_message=session.error_message or None,
        is_loading=session.is_loading,
        completed=session.completed,
        dismissed=session.dismissed,
        selected_sports=[
            SelectionView(
                sport_id=selection.sport_id,
                name=selection.sport.name,
                experience_level=selection.experience_level,
                is_preferred=selection.is_preferred,
                notes=selection.notes,
            )
            for selection in form.selected_sports
        ],
        available_sports=[
            SportView(id=sport.id, name=sport.name, description=sport.description)
            for sport in session.available_sports
        ],
        countries=[
            CountryView(id=country.id, name=country.name, code=country.code)
            for country in session.countries
        ],
        cities=[
            CityView(id=city.id, name=city.name, country_id=city.country_id)
            for city in session.cities
        ],
        credentials=(
            CredentialsView(
                user_id=credentials.user_id,
                username=credentials.username,
                email=credentials.email,
                access_token=credentials.access_token,
                refresh_token=credentials.refresh_token,
            )
            if credentials
            else None
        ),
    )


def _require_sport(orchestrator: RegistrationOrchestrator, sport_id: int) -> Sport:
    sport = orchestrator.find_sport(sport_id)
    if sport is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sport not found")
    return sport


@router.post(
    "/registrations",
    response_model=RegistrationView,
    status_code=status.HTTP_201_CREATED,
    summary="Open a registration wizard",
    description="Start a new wizard session on the basic info step. "
    "The sports catalog and country list are loaded up front.",
)
async def open_registration(
    registry: SessionRegistry = Depends(get_session_registry),
) -> RegistrationView:
    session_id, orchestrator = await registry.open()
    return build_view(session_id, orchestrator)


@router.get(
    "/registrations/{session_id}",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Get wizard state",
)
async def get_registration(
    session_id: str,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    return build_view(session_id, orchestrator)


@router.delete(
    "/registrations/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Cancel a registration wizard",
)
async def cancel_registration(
    session_id: str,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
    await registry.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/registrations/{session_id}/fields",
    response_model=RegistrationView,
    responses={**_NOT_FOUND, 422: {"description": "Validation error"}},
    summary="Edit form fields",
    description="Apply the edits present in the body. Username and email edits start "
    "a debounced availability check; the view reports 'checking' until it resolves.",
)
async def update_fields(
    session_id: str,
    update: FieldUpdate,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    for name, value in update.model_dump(exclude_unset=True).items():
        if name == "date_of_birth":
            orchestrator.set_date_of_birth(value)
        elif name == "gender":
            orchestrator.set_gender(value)
        elif name == "overall_experience_level":
            if value is not None:
                orchestrator.set_overall_experience(value)
        else:
            orchestrator.update_field(name, value or "")
    return build_view(session_id, orchestrator)


@router.put(
    "/registrations/{session_id}/location",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Select country, city and district",
)
async def update_location(
    session_id: str,
    update: LocationUpdate,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    session = orchestrator.session
    country = None
    if update.country_id is not None:
        country = next((c for c in session.countries if c.id == update.country_id), None)
        if country is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Country not found")
    if country != session.form.country:
        await orchestrator.select_country(country)

    if update.city_id is not None:
        city = next((c for c in session.cities if c.id == update.city_id), None)
        if city is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
        orchestrator.select_city(city)
    if update.district is not None:
        orchestrator.update_field("district", update.district)
    return build_view(session_id, orchestrator)


@router.post(
    "/registrations/{session_id}/proceed",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Advance to the next step",
    description="Advance if the current step is satisfied, otherwise flag the "
    "offending fields. On the final step the registration is submitted; a "
    "completed session is closed and its credentials returned once.",
)
async def proceed(
    session_id: str,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
    registry: SessionRegistry = Depends(get_session_registry),
) -> RegistrationView:
    await orchestrator.proceed()
    view = build_view(session_id, orchestrator)
    if orchestrator.session.completed:
        await registry.close(session_id)
    return view


@router.post(
    "/registrations/{session_id}/back",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Go back one step",
    description="Going back from the first step dismisses and closes the wizard.",
)
async def go_back(
    session_id: str,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
    registry: SessionRegistry = Depends(get_session_registry),
) -> RegistrationView:
    orchestrator.go_back()
    view = build_view(session_id, orchestrator)
    if orchestrator.session.dismissed:
        await registry.close(session_id)
    return view


@router.post(
    "/registrations/{session_id}/steps/{step}",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Jump to a step",
    description="Direct navigation without gating, e.g. from a step indicator.",
)
async def jump_to_step(
    session_id: str,
    step: RegistrationStep,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    orchestrator.jump_to(step)
    return build_view(session_id, orchestrator)


@router.post(
    "/registrations/{session_id}/sports/{sport_id}/toggle",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Select or deselect a sport",
)
async def toggle_sport(
    session_id: str,
    sport_id: int,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    orchestrator.toggle_sport(_require_sport(orchestrator, sport_id))
    return build_view(session_id, orchestrator)


@router.patch(
    "/registrations/{session_id}/sports/{sport_id}",
    response_model=RegistrationView,
    responses=_NOT_FOUND,
    summary="Update preferences of a selected sport",
)
async def update_sport(
    session_id: str,
    sport_id: int,
    update: SportUpdate,
    orchestrator: RegistrationOrchestrator = Depends(get_orchestrator),
) -> RegistrationView:
    if orchestrator.session.form.find_selection(sport_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sport not selected")
    sport = _require_sport(orchestrator, sport_id)
    if update.experience_level is not None:
        orchestrator.update_sport_experience(sport, update.experience_level)
    if update.is_preferred is not None:
        orchestrator.update_sport_preference(sport, update.is_preferred)
    if update.notes is not None:
        orchestrator.update_sport_notes(sport, update.notes)
    return build_view(session_id, orchestrator)
