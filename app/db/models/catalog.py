from sqlalchemy import Column, ForeignKey, String, Text, Boolean, Numeric
from sqlalchemy.orm import relationship
from app.db.base_class import Base, IdMixin, TimestampMixin


class Category(Base, IdMixin, TimestampMixin):
	__tablename__ = "categories"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")


class Unit(Base, IdMixin, TimestampMixin):
	__tablename__ = "units"

	# Null business marks a system-wide unit shared by every tenant
	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=True, index=True)
	code = Column(String, nullable=False)
	label = Column(String, nullable=False)
	unit_type = Column(String, nullable=False, default="COUNT")


class Product(Base, IdMixin, TimestampMixin):
	__tablename__ = "products"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
	name = Column(String, nullable=False)
	status = Column(String, nullable=False, default="ACTIVE")
	description = Column(Text, nullable=True)

	category = relationship("Category")
	variants = relationship("Variant", back_populates="product", order_by="Variant.created_at")


class Variant(Base, IdMixin, TimestampMixin):
	__tablename__ = "variants"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
	name = Column(String, nullable=False)
	sku = Column(String, nullable=True)
	base_unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	sell_unit_id = Column(String(36), ForeignKey("units.id"), nullable=True)
	conversion_factor = Column(Numeric(18, 4), nullable=True)
	default_price = Column(Numeric(18, 2), nullable=True)
	default_cost = Column(Numeric(18, 2), nullable=True)
	vat_mode = Column(String, nullable=False, default="INCLUSIVE")
	status = Column(String, nullable=False, default="ACTIVE")

	product = relationship("Product", back_populates="variants")
	base_unit = relationship("Unit", foreign_keys=[base_unit_id])
	sell_unit = relationship("Unit", foreign_keys=[sell_unit_id])
	barcodes = relationship("Barcode", back_populates="variant", order_by="Barcode.created_at")


class Barcode(Base, IdMixin, TimestampMixin):
	__tablename__ = "barcodes"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False, index=True)
	code = Column(String, nullable=False)
	is_active = Column(Boolean, nullable=False, default=True)

	variant = relationship("Variant", back_populates="barcodes")


class ProductImage(Base, IdMixin, TimestampMixin):
	__tablename__ = "product_images"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	product_id = Column(String(36), ForeignKey("products.id"), nullable=True)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=True)
	url = Column(String, nullable=False)
	storage_key = Column(String, nullable=True)
	status = Column(String, nullable=False, default="ACTIVE")


class BranchVariantAvailability(Base, IdMixin, TimestampMixin):
	__tablename__ = "branch_variant_availability"

	business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
	branch_id = Column(String(36), ForeignKey("branches.id"), nullable=False)
	variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
	is_active = Column(Boolean, nullable=False, default=True)
