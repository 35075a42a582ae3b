"""
Default landmark table: birdwatching hotspots and scenic places.
"""

from .models import Landmark

DEFAULT_LANDMARKS = (
    # Birdwatching hotspots
    Landmark('Manu National Park, Peru', -71.7201, -11.9981),
    Landmark('Pipeline Road, Panama', -79.7500, 9.1500),
    Landmark('Mindo Cloud Forest, Ecuador', -78.7760, -0.0519),
    Landmark('Rio Blanco, Colombia', -75.4830, 5.0670),
    Landmark('Everglades National Park, USA', -80.8980, 25.2860),
    Landmark('Monfragüe National Park, Spain', -6.0000, 39.8500),
    Landmark('Lochinvar National Park, Zambia', 27.2500, -15.8000),
    Landmark('Kruger National Park, South Africa', 31.4833, -24.0116),
    Landmark('Kakadu National Park, Australia', 132.4333, -12.4333),
    Landmark('Varirata National Park, PNG', 147.3667, -9.4333),
    Landmark('Danum Valley, Borneo', 117.6667, 4.9667),
    Landmark('Bharatpur Bird Sanctuary, India', 77.5333, 27.1667),
    
    # Scenic places
    Landmark('Grand Canyon', -112.1129, 36.1069),
    Landmark('Mont Blanc', 6.8763, 45.8326),
    Landmark('Machu Picchu', -72.5450, -13.1631),
    Landmark('Mt. Fuji', 138.7274, 35.3606),
    Landmark('Madrid', -3.7038, 40.4168),
    Landmark('Rio de Janeiro', -43.2096, -22.9068),
    Landmark('Mt. Everest', 86.9250, 27.9881),
    Landmark('Skógafoss', -19.5113, 63.5321),
    Landmark('Mauna Kea', -155.5828, 19.8968),
    Landmark('Rome', 12.4964, 41.9028),
    Landmark('San Francisco', -122.4194, 37.7749),
    Landmark('Pyramids of Giza', 31.1342, 29.9792),
    Landmark('Sydney', 151.2093, -33.8688),
    Landmark('New York City', -73.9352, 40.7306),
)
