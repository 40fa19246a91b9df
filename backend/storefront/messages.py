# Overview: Persian (fa-IR) user-facing messages for API envelopes.

INTERNAL_ERROR = "خطای داخلی سرور"
NOT_FOUND = "موردی یافت نشد"
METHOD_NOT_ALLOWED = "روش درخواست مجاز نیست"
UNAUTHORIZED = "دسترسی غیرمجاز"
INVALID_INPUT = "اطلاعات وارد شده صحیح نیست"

IDENTITY_REQUIRED = "شناسه کاربر یا نشست الزامی است"
PRODUCT_ID_REQUIRED = "شناسه محصول الزامی است"
PRODUCT_AND_QUANTITY_REQUIRED = "شناسه محصول و تعداد الزامی است"
PRODUCT_NOT_FOUND = "محصول یافت نشد یا غیرفعال است"
PRICE_UNAVAILABLE = "قیمت این محصول در حال حاضر در دسترس نیست"
INVENTORY_NOT_FOUND = "موجودی برای این محصول ثبت نشده است"
INSUFFICIENT_STOCK = "موجودی کافی نیست. موجودی فعلی: {available}"
BELOW_TIER_MINIMUM = "حداقل تعداد برای خرید عمده {min_quantity} عدد است"
BELOW_PRODUCT_MINIMUM = "حداقل تعداد سفارش این محصول {min_quantity} عدد است"
ABOVE_PRODUCT_MAXIMUM = "حداکثر تعداد سفارش این محصول {max_quantity} عدد است"
CART_FULL = "حداکثر {max_items} قلم کالا در سبد خرید مجاز است"
WHOLESALE_NOT_ALLOWED = "قیمت عمده فقط برای مشتریان عمده قابل استفاده است"
INVALID_PRICE_TYPE = "نوع قیمت نامعتبر است"

CART_FETCHED = "سبد خرید با موفقیت دریافت شد"
CART_ITEM_ADDED = "محصول به سبد خرید اضافه شد"
CART_ITEM_MERGED = "محصول در سبد خرید بروزرسانی شد"
CART_UPDATED = "سبد خرید بروزرسانی شد"
CART_ITEM_REMOVED = "محصول از سبد خرید حذف شد"
CART_CLEARED = "سبد خرید پاک شد"
CART_ITEM_NOT_FOUND = "این محصول در سبد خرید نیست"

EMPTY_CART = "سبد خرید خالی است"
CUSTOMER_INFO_REQUIRED = "اطلاعات مشتری (نام و تلفن) الزامی است"
BELOW_MIN_ORDER = "حداقل مبلغ سفارش {min_amount} تومان است"
INVALID_PAYMENT_METHOD = "روش پرداخت نامعتبر است"
INVALID_SHIPPING_METHOD = "روش ارسال نامعتبر است"
ORDER_ID_REQUIRED = "شناسه سفارش الزامی است"
ORDER_NOT_FOUND = "سفارش یافت نشد"
ORDER_CREATED = "سفارش با موفقیت ایجاد شد"
ORDER_FETCHED = "سفارش با موفقیت دریافت شد"
ORDERS_FETCHED = "لیست سفارشات با موفقیت دریافت شد"
ORDER_STATUS_UPDATED = "وضعیت سفارش بروزرسانی شد"
ORDER_CANCELLED = "سفارش با موفقیت لغو شد"
ORDER_ALREADY_CANCELLED = "سفارش قبلاً لغو شده است"
ORDER_NOT_CANCELLABLE = "سفارش ارسال شده یا تحویل داده شده قابل لغو نیست"
INVALID_STATUS = "وضعیت نامعتبر"
INVALID_TRANSITION = "تغییر وضعیت از {current} به {target} مجاز نیست"

PRODUCTS_FETCHED = "محصولات با موفقیت دریافت شد"
PRODUCT_FETCHED = "محصول با موفقیت دریافت شد"
CATEGORIES_FETCHED = "دسته‌بندی‌ها با موفقیت دریافت شد"
BRANDS_FETCHED = "برندها با موفقیت دریافت شد"

SYNC_COMPLETED = "همگام‌سازی با موفقیت انجام شد"
SYNC_PARTIAL = "همگام‌سازی با خطا در برخی موارد انجام شد"
SYNC_FAILED = "خطا در همگام‌سازی با سرور کارا"
SYNC_LOGS_FETCHED = "گزارش همگام‌سازی دریافت شد"
INVALID_SYNC_TYPE = "نوع همگام‌سازی نامعتبر است"
KARA_UNREACHABLE = "عدم دسترسی به سرور کارا"
