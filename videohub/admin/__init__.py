from flask import Blueprint

bp = Blueprint('admin', __name__)

from videohub.admin import routes
