from marshmallow import EXCLUDE, Schema, fields, validate, ValidationError

from modishcarts.models.order import ADDRESS_TYPES
from modishcarts.models.payment import PAYMENT_METHODS
from modishcarts.utils.date_utils import DateUtils
from modishcarts.utils.validators import ValidationUtils

PRODUCT_SORTS = ("newest", "price_asc", "price_desc", "name")


def _email(value: str) -> None:
    if not ValidationUtils.validate_email(value):
        raise ValidationError("Not a valid email address.")


def _sku(value: str) -> None:
    if not ValidationUtils.validate_sku(value):
        raise ValidationError("SKU must be 2-64 letters, digits, '-' or '_'.")


def _slug(value: str) -> None:
    if not ValidationUtils.validate_slug(value):
        raise ValidationError("Slug must be lower-case words separated by '-'.")


def _phone(value: str) -> None:
    if value is not None and not ValidationUtils.validate_phone(value):
        raise ValidationError("Not a valid phone number.")


# Matches the cart_items.session_id column width.
SESSION_ID_MAX_LENGTH = 128


class RequestSchema(Schema):
    """Base for request bodies: unknown keys are ignored rather than rejected."""

    class Meta:
        unknown = EXCLUDE


class UTCDateTime(fields.DateTime):
    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return super()._serialize(DateUtils.to_utc(value), attr, obj, **kwargs)


# --------------------------------------------------------------------- #
# Auth                                                                   #
# --------------------------------------------------------------------- #
class RegisterSchema(RequestSchema):
    email = fields.Str(required=True, validate=_email)
    password = fields.Str(
        required=True,
        validate=validate.Length(
            min=ValidationUtils.MIN_PASSWORD_LENGTH, max=ValidationUtils.MAX_PASSWORD_LENGTH
        ),
    )
    first_name = fields.Str(required=True, data_key="firstName", validate=validate.Length(min=1, max=100))
    last_name = fields.Str(required=True, data_key="lastName", validate=validate.Length(min=1, max=100))
    phone = fields.Str(load_default=None, allow_none=True, validate=_phone)


class LoginSchema(RequestSchema):
    email = fields.Str(required=True, validate=_email)
    password = fields.Str(required=True, validate=validate.Length(min=1))
    session_id = fields.Str(
        load_default=None, allow_none=True, data_key="sessionId",
        validate=validate.Length(max=SESSION_ID_MAX_LENGTH),
    )


class RefreshSchema(RequestSchema):
    refresh_token = fields.Str(required=True, data_key="refreshToken")


class ForgotPasswordSchema(RequestSchema):
    email = fields.Str(required=True, validate=_email)


class ResetPasswordSchema(RequestSchema):
    token = fields.Str(required=True, validate=validate.Length(min=1))
    password = fields.Str(
        required=True,
        validate=validate.Length(
            min=ValidationUtils.MIN_PASSWORD_LENGTH, max=ValidationUtils.MAX_PASSWORD_LENGTH
        ),
    )


class ProfileUpdateSchema(RequestSchema):
    first_name = fields.Str(data_key="firstName", validate=validate.Length(min=1, max=100))
    last_name = fields.Str(data_key="lastName", validate=validate.Length(min=1, max=100))
    phone = fields.Str(allow_none=True, validate=_phone)


class UserSchema(Schema):
    id = fields.Str()
    email = fields.Str()
    first_name = fields.Str(data_key="firstName")
    last_name = fields.Str(data_key="lastName")
    phone = fields.Str(allow_none=True)
    is_admin = fields.Bool(data_key="isAdmin")
    is_active = fields.Bool(data_key="isActive")
    created_at = UTCDateTime(data_key="createdAt")
    updated_at = UTCDateTime(data_key="updatedAt")


# --------------------------------------------------------------------- #
# Products                                                               #
# --------------------------------------------------------------------- #
class ProductQuerySchema(RequestSchema):
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=20, validate=validate.Range(min=1, max=100))
    category_id = fields.Str(load_default=None, data_key="categoryId")
    search = fields.Str(load_default=None, validate=validate.Length(max=100))
    min_price = fields.Decimal(load_default=None, data_key="minPrice", validate=validate.Range(min=0))
    max_price = fields.Decimal(load_default=None, data_key="maxPrice", validate=validate.Range(min=0))
    featured = fields.Bool(load_default=None)
    sort = fields.Str(load_default="newest", validate=validate.OneOf(PRODUCT_SORTS))


class ProductImageInputSchema(RequestSchema):
    url = fields.Url(required=True)
    alt_text = fields.Str(load_default=None, data_key="altText")
    sort_order = fields.Int(load_default=None, data_key="sortOrder", validate=validate.Range(min=0))


class ProductWriteSchema(RequestSchema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    slug = fields.Str(load_default=None, validate=_slug)
    description = fields.Str(load_default="")
    short_desc = fields.Str(load_default=None, allow_none=True, data_key="shortDesc", validate=validate.Length(max=500))
    sku = fields.Str(required=True, validate=_sku)
    price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))
    compare_price = fields.Decimal(
        load_default=None, allow_none=True, places=2, data_key="comparePrice", validate=validate.Range(min=0)
    )
    category_id = fields.Str(required=True, data_key="categoryId")
    inventory_qty = fields.Int(load_default=0, data_key="inventoryQty", validate=validate.Range(min=0))
    weight = fields.Float(load_default=None, allow_none=True, validate=validate.Range(min=0))
    is_active = fields.Bool(load_default=True, data_key="isActive")
    is_featured = fields.Bool(load_default=False, data_key="isFeatured")
    tags = fields.List(fields.Str(validate=validate.Length(min=1, max=50)), load_default=list)
    meta_title = fields.Str(load_default=None, allow_none=True, data_key="metaTitle")
    meta_desc = fields.Str(load_default=None, allow_none=True, data_key="metaDesc")
    images = fields.List(fields.Nested(ProductImageInputSchema), load_default=list)


class ReviewCreateSchema(RequestSchema):
    rating = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=5))
    title = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    comment = fields.Str(required=True, validate=validate.Length(min=1, max=5000))


class CategorySchema(Schema):
    id = fields.Str()
    name = fields.Str()
    slug = fields.Str()
    description = fields.Str(allow_none=True)
    image = fields.Str(allow_none=True)


class ProductImageSchema(Schema):
    id = fields.Str()
    url = fields.Str()
    alt_text = fields.Str(data_key="altText", allow_none=True)
    sort_order = fields.Int(data_key="sortOrder")


class ProductVariantSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    sku = fields.Str()
    price = fields.Float(attribute="effective_price")
    inventory_qty = fields.Int(data_key="inventoryQty")
    options = fields.Dict()


class ReviewerSchema(Schema):
    first_name = fields.Str(data_key="firstName")
    last_name = fields.Str(data_key="lastName")


class ReviewSchema(Schema):
    id = fields.Str()
    product_id = fields.Str(data_key="productId")
    rating = fields.Int()
    title = fields.Str()
    comment = fields.Str()
    is_approved = fields.Bool(data_key="isApproved")
    user = fields.Nested(ReviewerSchema)
    created_at = UTCDateTime(data_key="createdAt")


class ProductSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    slug = fields.Str()
    description = fields.Str()
    short_desc = fields.Str(data_key="shortDesc", allow_none=True)
    sku = fields.Str()
    price = fields.Float()
    compare_price = fields.Float(data_key="comparePrice", allow_none=True)
    category_id = fields.Str(data_key="categoryId")
    inventory_qty = fields.Int(data_key="inventoryQty")
    weight = fields.Float(allow_none=True)
    is_active = fields.Bool(data_key="isActive")
    is_featured = fields.Bool(data_key="isFeatured")
    tags = fields.List(fields.Str())
    meta_title = fields.Str(data_key="metaTitle", allow_none=True)
    meta_desc = fields.Str(data_key="metaDesc", allow_none=True)
    category = fields.Nested(CategorySchema, only=("id", "name", "slug"))
    images = fields.List(fields.Nested(ProductImageSchema))
    created_at = UTCDateTime(data_key="createdAt")
    updated_at = UTCDateTime(data_key="updatedAt")


class ProductDetailSchema(ProductSchema):
    variants = fields.List(fields.Nested(ProductVariantSchema))
    reviews = fields.Method("get_approved_reviews")

    def get_approved_reviews(self, product):
        approved = sorted(
            (r for r in product.reviews if r.is_approved),
            key=lambda r: r.created_at,
            reverse=True,
        )
        return ReviewSchema(many=True).dump(approved)


# --------------------------------------------------------------------- #
# Cart                                                                   #
# --------------------------------------------------------------------- #
class CartAddSchema(RequestSchema):
    product_id = fields.Str(required=True, data_key="productId", validate=validate.Length(min=1))
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=99))
    session_id = fields.Str(
        load_default=None, allow_none=True, data_key="sessionId",
        validate=validate.Length(max=SESSION_ID_MAX_LENGTH),
    )


class CartUpdateSchema(RequestSchema):
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=99))


class CartMergeSchema(RequestSchema):
    session_id = fields.Str(
        required=True, data_key="sessionId", validate=validate.Length(min=1, max=SESSION_ID_MAX_LENGTH)
    )


class CartProductSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    slug = fields.Str()
    sku = fields.Str()
    price = fields.Float()
    inventory_qty = fields.Int(data_key="inventoryQty")
    is_active = fields.Bool(data_key="isActive")
    images = fields.List(fields.Nested(ProductImageSchema))


class CartItemSchema(Schema):
    id = fields.Str()
    product_id = fields.Str(data_key="productId")
    quantity = fields.Int()
    user_id = fields.Str(data_key="userId", allow_none=True)
    session_id = fields.Str(data_key="sessionId", allow_none=True)
    product = fields.Nested(CartProductSchema)
    created_at = UTCDateTime(data_key="createdAt")
    updated_at = UTCDateTime(data_key="updatedAt")


# --------------------------------------------------------------------- #
# Addresses                                                              #
# --------------------------------------------------------------------- #
class AddressWriteSchema(RequestSchema):
    type = fields.Str(required=True, validate=validate.OneOf(ADDRESS_TYPES))
    first_name = fields.Str(required=True, data_key="firstName", validate=validate.Length(min=1, max=100))
    last_name = fields.Str(required=True, data_key="lastName", validate=validate.Length(min=1, max=100))
    company = fields.Str(load_default=None, allow_none=True)
    street1 = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    street2 = fields.Str(load_default=None, allow_none=True)
    city = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    state = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    postal_code = fields.Str(required=True, data_key="postalCode", validate=validate.Length(min=3, max=20))
    country = fields.Str(load_default="US", validate=validate.Length(equal=2))
    phone = fields.Str(load_default=None, allow_none=True, validate=_phone)
    is_default = fields.Bool(load_default=False, data_key="isDefault")


class AddressSchema(Schema):
    id = fields.Str()
    type = fields.Str()
    first_name = fields.Str(data_key="firstName")
    last_name = fields.Str(data_key="lastName")
    company = fields.Str(allow_none=True)
    street1 = fields.Str()
    street2 = fields.Str(allow_none=True)
    city = fields.Str()
    state = fields.Str()
    postal_code = fields.Str(data_key="postalCode")
    country = fields.Str()
    phone = fields.Str(allow_none=True)
    is_default = fields.Bool(data_key="isDefault")


# --------------------------------------------------------------------- #
# Orders and payments                                                    #
# --------------------------------------------------------------------- #
class CheckoutSchema(RequestSchema):
    shipping_address_id = fields.Str(load_default=None, allow_none=True, data_key="shippingAddressId")
    billing_address_id = fields.Str(load_default=None, allow_none=True, data_key="billingAddressId")
    notes = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=1000))


class OrderItemSchema(Schema):
    id = fields.Str()
    product_id = fields.Str(data_key="productId", allow_none=True)
    product_name = fields.Str(data_key="productName")
    sku = fields.Str()
    unit_price = fields.Float(data_key="unitPrice")
    quantity = fields.Int()
    total_price = fields.Float(data_key="totalPrice")


class OrderSchema(Schema):
    id = fields.Str()
    order_number = fields.Str(data_key="orderNumber")
    user_id = fields.Str(data_key="userId")
    status = fields.Str()
    subtotal = fields.Float()
    tax_amount = fields.Float(data_key="taxAmount")
    shipping_amount = fields.Float(data_key="shippingAmount")
    total_amount = fields.Float(data_key="totalAmount")
    shipping_address_id = fields.Str(data_key="shippingAddressId", allow_none=True)
    billing_address_id = fields.Str(data_key="billingAddressId", allow_none=True)
    notes = fields.Str(allow_none=True)
    items = fields.List(fields.Nested(OrderItemSchema))
    created_at = UTCDateTime(data_key="createdAt")
    updated_at = UTCDateTime(data_key="updatedAt")


class PaymentCreateSchema(RequestSchema):
    order_id = fields.Str(required=True, data_key="orderId", validate=validate.Length(min=1))
    method = fields.Str(load_default="card", validate=validate.OneOf(PAYMENT_METHODS))


class PaymentSchema(Schema):
    id = fields.Str()
    order_id = fields.Str(data_key="orderId")
    amount = fields.Float()
    currency = fields.Str()
    method = fields.Str()
    status = fields.Str()
    transaction_id = fields.Str(data_key="transactionId", allow_none=True)
    created_at = UTCDateTime(data_key="createdAt")
