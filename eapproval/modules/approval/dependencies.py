"""전자결재 모듈 dependencies."""
from eapproval.modules.directory.dependencies import (  # noqa: F401
    get_current_user,
    get_db,
    require_roles,
)
from eapproval.modules.directory.models import ROLE_SUPER_ADMIN

# 관리자 템플릿 관리는 SUPER_ADMIN 만
require_admin = require_roles([ROLE_SUPER_ADMIN])
