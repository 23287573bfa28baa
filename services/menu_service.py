# services/menu_service.py
from typing import List

from models import Product


def get_active_menu(product_repo) -> List[Product]:
    return product_repo.find_all_active()
