# Models package
from .hotel import Hotel
from .room_type import RoomType
from .room import Room, RoomStatus
from .inventory_slot import InventorySlot
from .room_block import RoomBlock, BlockType, BLOCK_CYCLE
from .customer import Customer
from .booking import Booking, BookingRoom, BookingStatus
from .user import AppUser, Role, UserRole, ROLE_LABELS

__all__ = [
    "Hotel", "RoomType", "Room", "RoomStatus",
    "InventorySlot", "RoomBlock", "BlockType", "BLOCK_CYCLE",
    "Customer", "Booking", "BookingRoom", "BookingStatus",
    "AppUser", "Role", "UserRole", "ROLE_LABELS",
]
