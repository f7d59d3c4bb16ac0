"""API Routes for the food-spending dashboard"""
import json
import logging
from typing import Annotated, Any, Callable, Dict, List, Literal

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel, ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import ConfigurationError, Settings, get_settings
from models.insights import ListingPage, Overview, SpendingView
from services import dashboard_service
from services.bills_service import normalize_records
from services.listing_service import DEFAULT_PAGE_SIZE, ListingState, apply_listing, update_listing
from utils.airtable_client import AirtableClient, AirtableError
from utils.auth import clear_session_cookie, password_matches, require_session, session_token, set_session_cookie

router = APIRouter()
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

CACHE_CONTROL = "s-maxage=60, stale-while-revalidate=300"


class LoginInput(BaseModel):
    password: str


# --- Dependency Functions ---

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_airtable_client(settings: SettingsDep) -> AirtableClient:
    """Dependency building an Airtable client, or failing with 500 when credentials are missing."""
    try:
        return AirtableClient(settings)
    except ConfigurationError as ce:
        logger.error(f"Configuration error: {ce}")
        raise HTTPException(status_code=500, detail=str(ce))


AirtableDep = Annotated[AirtableClient, Depends(get_airtable_client)]


def _fetch(fetcher: Callable[[], List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Runs an Airtable fetch, translating its failures into HTTP errors."""
    try:
        return fetcher()
    except AirtableError as ae:
        raise HTTPException(status_code=ae.status_code, detail=ae.message)
    except requests.RequestException as e:
        logger.exception(f"Network error talking to Airtable: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch data from Airtable.")


def _restaurant_records(client: AirtableClient, settings: Settings) -> List[Dict[str, Any]]:
    try:
        settings.require_airtable(with_view=True)
    except ConfigurationError as ce:
        logger.error(f"Configuration error: {ce}")
        raise HTTPException(status_code=500, detail=str(ce))
    return _fetch(client.restaurant_activities)


# --- Proxy Routes ---

@router.get("/airtable", summary="Get Activities", description="Proxies all activity records from Airtable.",
            dependencies=[Depends(require_session)])
def get_activities(response: Response, client: AirtableDep) -> Dict[str, Any]:
    logger.info("GET /airtable endpoint called.")
    records = _fetch(client.activities)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return {"records": records}


@router.get("/airtable/restaurants", summary="Get Restaurant Activities",
            description="Activities of the restaurant view with their linked restaurant records embedded.",
            dependencies=[Depends(require_session)])
def get_restaurant_activities(response: Response, client: AirtableDep, settings: SettingsDep) -> Dict[str, Any]:
    logger.info("GET /airtable/restaurants endpoint called.")
    records = _restaurant_records(client, settings)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return {"records": records}


@router.get("/mapbox", summary="Get Map Token", dependencies=[Depends(require_session)])
def get_map_token(settings: SettingsDep) -> Dict[str, str]:
    if not settings.mapbox_public_token:
        logger.error("MAPBOX_PUBLIC_TOKEN is not set.")
        raise HTTPException(status_code=500, detail="Mapbox token is not configured on the server.")
    return {"token": settings.mapbox_public_token}


# --- Session Routes ---

@router.post("/login", summary="Log In", description="Checks the shared site password and sets the session cookie.")
@limiter.limit(lambda: get_settings().login_rate_limit)
async def login(request: Request, response: Response, settings: SettingsDep) -> Dict[str, str]:
    if not settings.site_password:
        logger.error("SITE_PASSWORD environment variable not set.")
        raise HTTPException(status_code=500, detail="Site password is not configured on the server.")

    try:
        payload = LoginInput(**(await request.json()))
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError, ValidationError) as e:
        logger.error(f"Error parsing login request body: {e}")
        raise HTTPException(status_code=400, detail="Invalid request body.")

    logger.info("Received login attempt.")
    if not password_matches(payload.password, settings.site_password):
        logger.warning("Invalid password attempt.")
        raise HTTPException(status_code=401, detail="Invalid password")

    logger.info("Login successful.")
    set_session_cookie(response, session_token(settings.site_password), secure=settings.secure_cookies)
    return {"message": "Logged in successfully"}


@router.post("/logout", summary="Log Out", description="Expires the session cookie.")
def logout(response: Response, settings: SettingsDep) -> Dict[str, str]:
    clear_session_cookie(response, secure=settings.secure_cookies)
    return {"message": "Logged out successfully"}


# --- Dashboard Routes ---

@router.get("/dashboard", response_model=SpendingView, summary="Spending Insights",
            description="Insight cards and achievements computed over all activities.",
            dependencies=[Depends(require_session)])
def get_dashboard(client: AirtableDep, settings: SettingsDep) -> SpendingView:
    bills = normalize_records(_fetch(client.activities), settings.unrecognized_spend_type, settings.local_timezone)
    return dashboard_service.build_spending_view(bills, home_city=settings.home_city)


@router.get("/overview", response_model=Overview, summary="Dashboard Overview",
            description="Summary numbers, headline insights and map markers for the landing page.",
            dependencies=[Depends(require_session)])
def get_overview(client: AirtableDep, settings: SettingsDep) -> Overview:
    bills = normalize_records(_fetch(client.activities), settings.unrecognized_spend_type, settings.local_timezone)
    return dashboard_service.build_overview(bills, home_city=settings.home_city)


@router.get("/restaurants", response_model=ListingPage, summary="Restaurant List",
            description="Searchable, sortable and paginated restaurant activities.",
            dependencies=[Depends(require_session)])
def get_restaurants(
    client: AirtableDep,
    settings: SettingsDep,
    q: str = Query("", description="Case-insensitive search over dish, restaurant, city and country."),
    sort: Literal['date', 'spend'] = Query('date', description="'date' (newest first) or 'spend' (highest first)."),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> ListingPage:
    logger.info(f"GET /restaurants endpoint called. Query '{q}', sort '{sort}', page {page}")
    bills = normalize_records(_restaurant_records(client, settings), settings.unrecognized_spend_type,
                              settings.local_timezone)
    state = update_listing(ListingState(page_size=page_size), query=q, sort=sort)
    state = update_listing(state, page=page)
    return apply_listing(bills, state)
