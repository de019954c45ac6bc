from mangum import Mangum

from wallpaper_push.main import app

handler = Mangum(app, lifespan="auto")
