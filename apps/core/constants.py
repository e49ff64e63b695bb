"""
Shared constants: user-facing messages, pagination bounds, role names
"""

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'

# Success Messages
SUCCESS_MESSAGES = {
    'REGISTER_SUCCESS': 'Đăng ký thành công',
    'LOGIN_SUCCESS': 'Đăng nhập thành công',
    'PASSWORD_CHANGED_SUCCESS': 'Đổi mật khẩu thành công',
    'TOKEN_REFRESHED': 'Token đã được làm mới',
    'CREATED_SUCCESS': 'Tạo mới thành công',
    'UPDATED_SUCCESS': 'Cập nhật thành công',
    'DELETED_SUCCESS': 'Xóa thành công',
    'FETCHED_SUCCESS': 'Lấy dữ liệu thành công',
    'CONTACT_RECEIVED': 'Cảm ơn bạn đã liên hệ! Chúng tôi sẽ phản hồi sớm nhất có thể.',
    'SUBSCRIBED_SUCCESS': 'Đăng ký nhận tin thành công',
    'UNSUBSCRIBED_SUCCESS': 'Hủy đăng ký nhận tin thành công',
}

# Error Messages
ERROR_MESSAGES = {
    'EMAIL_ALREADY_EXISTS': 'Email đã được sử dụng',
    'USERNAME_ALREADY_EXISTS': 'Tên đăng nhập đã được sử dụng',
    'EMAIL_NOT_FOUND': 'Email không tồn tại',
    'USER_NOT_FOUND': 'Người dùng không tồn tại',
    'ACCOUNT_DISABLED': 'Tài khoản đã bị vô hiệu hóa',
    'INCORRECT_PASSWORD': 'Mật khẩu không đúng',
    'INCORRECT_CURRENT_PASSWORD': 'Mật khẩu hiện tại không đúng',
    'TOKEN_INVALID': 'Token không hợp lệ',
    'TOKEN_INVALID_OR_EXPIRED': 'Token không hợp lệ hoặc đã hết hạn',
    'GOOGLE_TOKEN_INVALID': 'Token Google không hợp lệ',
    'GOOGLE_AUTH_FAILED': 'Xác thực Google thất bại',
    'UNAUTHORIZED': 'Bạn không có quyền truy cập',
    'ALREADY_REVIEWED': 'Bạn đã đánh giá sản phẩm này rồi',
    'REVIEW_REQUIRES_PURCHASE': 'Bạn chỉ có thể đánh giá sản phẩm đã mua',
    'REVIEW_NOT_FOUND': 'Đánh giá không tồn tại',
    'PRODUCT_NOT_FOUND': 'Sản phẩm không tồn tại',
    'CONTACT_NOT_FOUND': 'Không tìm thấy liên hệ',
    'ALREADY_SUBSCRIBED': 'Email này đã đăng ký nhận tin',
    'ALREADY_UNSUBSCRIBED': 'Email đã hủy đăng ký trước đó',
    'SUBSCRIBER_EMAIL_NOT_FOUND': 'Email không tồn tại trong danh sách',
    'SUBSCRIBER_NOT_FOUND': 'Không tìm thấy subscriber',
    'INVALID_INPUT': 'Dữ liệu không hợp lệ',
    'NOT_FOUND': 'Không tìm thấy',
    'INTERNAL_ERROR': 'Lỗi hệ thống',
}

# Pagination
PAGINATION = {
    'DEFAULT_PAGE': 1,
    'DEFAULT_LIMIT': 20,
    'MAX_LIMIT': 100,
}
