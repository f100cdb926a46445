from justchiro.schemas.chiropractor import chiropractor_rules
from justchiro.schemas.blog import blog_post_rules
from justchiro.schemas.auth import login_rules, password_change_rules
from justchiro.schemas.settings import setting_create_rules, setting_update_rules, settings_bulk_rules
from justchiro.schemas.user import user_create_rules
