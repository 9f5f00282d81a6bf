"""
tests/sources.py
----------------
Sample model-definition files shared by the parser and ingestion tests.
"""

PRISMA_SOURCE = """
datasource db {
  provider = "postgresql"
  url      = env("DATABASE_URL")
}

enum Role {
  USER
  ADMIN
}

/// A registered account
model User {
  id        Int      @id @default(autoincrement())
  email     String   @unique
  name      String?
  role      Role     @default(USER)
  posts     Post[]
  createdAt DateTime @default(now())
}

model Post {
  id       Int      @id @default(autoincrement())
  title    String   // shown in listings
  author   User     @relation(fields: [authorId], references: [id])
  authorId Int
  tags     String[]
}

model Membership {
  userId  Int
  groupId Int
  @@id([userId, groupId])
}
"""

MONGOOSE_SOURCE = """
const mongoose = require('mongoose');
const { Schema } = mongoose;

const userSchema = new Schema({
  email: { type: String, required: true, unique: true },
  name: String,
  age: Number,
  tags: [String],
}, { timestamps: true });

const orderSchema = new mongoose.Schema({
  user: { type: Schema.Types.ObjectId, ref: 'User', required: true },
  items: [{ type: Schema.Types.ObjectId, ref: 'Item' }],
  total: { type: Number, required: [true, 'total is required'] },
  meta: {},
});

module.exports = {
  User: mongoose.model('User', userSchema),
  Order: mongoose.model('Order', orderSchema),
};
"""

SEQUELIZE_SOURCE = """
const { Sequelize, DataTypes } = require('sequelize');
const sequelize = new Sequelize('sqlite::memory:');

const User = sequelize.define('User', {
  email: { type: DataTypes.STRING, allowNull: false, unique: true },
  name: DataTypes.STRING,
});

const Order = sequelize.define('Order', {
  id: { type: DataTypes.INTEGER, primaryKey: true, autoIncrement: true },
  total: { type: DataTypes.DECIMAL(10, 2), allowNull: false },
  userId: {
    type: DataTypes.INTEGER,
    references: { model: 'User', key: 'id' },
  },
});

User.hasMany(Order, { foreignKey: 'userId' });
Order.belongsTo(User, { foreignKey: 'userId' });
"""
