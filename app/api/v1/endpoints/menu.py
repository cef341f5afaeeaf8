"""Restaurant menu endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import AuthContext, get_auth_context
from app.db.session import get_db
from app.models.menu import Addon, MenuItem, MenuItemAddon
from app.models.restaurant import Restaurant
from app.schemas.menu import AddonCreate, AddonRead, MenuItemCreate, MenuItemRead

router: APIRouter = APIRouter()


def _serialize_menu_item(item: MenuItem, active_only: bool = True) -> MenuItemRead:
    addons = [link.addon for link in item.addon_links if link.addon.is_active or not active_only]
    return MenuItemRead(
        id=item.id,
        restaurant_id=item.restaurant_id,
        name=item.name,
        description=item.description,
        category=item.category,
        price_cents=item.price_cents,
        is_active=item.is_active,
        addons=[AddonRead.model_validate(addon) for addon in addons],
    )


def _require_editor(db: Session, auth: AuthContext, restaurant_id: int) -> Restaurant:
    restaurant: Restaurant | None = db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    if not auth.can_edit(restaurant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return restaurant


@router.get("/{restaurant_slug}", response_model=list[MenuItemRead])
def get_menu(restaurant_slug: str, db: Session = Depends(get_db)) -> list[MenuItemRead]:
    """Return the active menu of a restaurant with its available add-ons."""
    restaurant: Restaurant | None = db.scalar(select(Restaurant).where(Restaurant.slug == restaurant_slug).limit(1))
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    items = db.scalars(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant.id, MenuItem.is_active.is_(True))
        .order_by(MenuItem.category.asc(), MenuItem.name.asc())
    ).all()
    return [_serialize_menu_item(item) for item in items]


@router.post("/items", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    payload: MenuItemCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> MenuItemRead:
    _require_editor(db, auth, payload.restaurant_id)
    item = MenuItem(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return _serialize_menu_item(item, active_only=False)


@router.post("/addons", response_model=AddonRead, status_code=status.HTTP_201_CREATED)
def create_addon(
    payload: AddonCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> Addon:
    """Create an add-on and attach it to the given menu items of the same restaurant."""
    _require_editor(db, auth, payload.restaurant_id)
    menu_items = []
    for menu_item_id in dict.fromkeys(payload.menu_item_ids):
        menu_item: MenuItem | None = db.get(MenuItem, menu_item_id)
        if menu_item is None or menu_item.restaurant_id != payload.restaurant_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Menu item {menu_item_id} not in restaurant")
        menu_items.append(menu_item)

    addon = Addon(restaurant_id=payload.restaurant_id, name=payload.name, price_cents=payload.price_cents, is_active=True)
    db.add(addon)
    db.flush()
    for menu_item in menu_items:
        db.add(MenuItemAddon(menu_item_id=menu_item.id, addon_id=addon.id))
    db.commit()
    db.refresh(addon)
    return addon
