from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import catalog, offers, schemas
from ..deps import get_db

router = APIRouter(prefix="/shopping", tags=["shopping"])


@router.get("/top-restaurant/{pincode}", response_model=List[schemas.VendorRead])
def get_top_restaurants(pincode: str, db_sess: Session = Depends(get_db)):
    return catalog.get_top_restaurants(db_sess, pincode)


@router.get("/foods-in-30-min/{pincode}", response_model=List[schemas.FoodWithVendor])
def get_foods_in_30_min(pincode: str, db_sess: Session = Depends(get_db)):
    return catalog.get_foods_in_30_min(db_sess, pincode)


@router.get("/search/{pincode}", response_model=List[schemas.FoodWithVendor])
def search_foods(pincode: str, query: str = Query(""), db_sess: Session = Depends(get_db)):
    return catalog.search_foods(db_sess, pincode, query)


@router.get("/offers/{pincode}", response_model=List[schemas.OfferRead])
def get_available_offers(pincode: str, db_sess: Session = Depends(get_db)):
    return offers.get_available_offers(db_sess, pincode)


@router.get("/restaurant/{vendor_id}", response_model=schemas.VendorWithFoods)
def get_restaurant(vendor_id: int, db_sess: Session = Depends(get_db)):
    return catalog.get_restaurant(db_sess, vendor_id)


@router.get("/{pincode}", response_model=List[schemas.VendorWithFoods])
def get_food_availability(pincode: str, db_sess: Session = Depends(get_db)):
    return catalog.get_food_availability(db_sess, pincode)
