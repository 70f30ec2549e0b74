from beanmart.models.product import Product
from beanmart.models.variant import ProductVariant
from beanmart.models.image import VariantImage
from beanmart.models.admin import Admin

__all__ = ["Product", "ProductVariant", "VariantImage", "Admin"]
